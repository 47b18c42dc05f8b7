from typing import Any, Optional


class SocketIOTransport:
    """Send events and manage rooms through the Flask-SocketIO server.

    Safe to call from handlers and from background tasks alike since it
    never touches the request context.
    """

    def __init__(self, socketio, namespace: str = '/'):
        self.socketio = socketio
        self.namespace = namespace

    def send(self, event: str, payload: Any = None, to: Optional[str] = None, skip: Optional[str] = None) -> None:
        args = () if payload is None else (payload,)
        self.socketio.emit(event, *args, to=to, skip_sid=skip, namespace=self.namespace)

    def enter_room(self, sid: str, room: str) -> None:
        self.socketio.server.enter_room(sid, room, namespace=self.namespace)

    def close_room(self, room: str) -> None:
        self.socketio.server.close_room(room, namespace=self.namespace)
