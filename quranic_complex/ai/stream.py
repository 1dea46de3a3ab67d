import logging
from quranic_complex import socketio

logger = logging.getLogger(__name__)


def chat_room(chat_id):
    return f'chat_{chat_id}'


class DataStream:
    """Progress events of one chat request.

    Events are pushed to the chat's Socket.IO room as they happen and kept
    so the HTTP response can carry them too.
    """

    def __init__(self, chat_id=None):
        self.chat_id = chat_id
        self.events = []

    def write(self, type_, content='', **extra):
        event = {'type': type_, 'content': content}
        event.update(extra)
        self.events.append(event)
        if self.chat_id:
            socketio.emit('chat_data', event, to=chat_room(self.chat_id))
        return event


class ChatContext:
    """Everything a tool needs about the request that invoked it."""

    def __init__(self, user, chat_id, stream=None):
        self.user = user
        self.chat_id = chat_id
        self.stream = stream or DataStream(chat_id)
