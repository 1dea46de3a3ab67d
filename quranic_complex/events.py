from flask_socketio import emit, join_room, leave_room
from quranic_complex import socketio
from quranic_complex.ai.stream import chat_room
from quranic_complex.decorators import load_current_user, get_current_user
from quranic_complex.services import chats as chat_service


def _get_socket_user():
    """Get current user from the Flask session context in Socket.IO events."""
    load_current_user()
    user = get_current_user()
    if user and user.is_authenticated:
        return user
    return None


@socketio.on('connect')
def handle_connect():
    user = _get_socket_user()
    if user:
        emit('connected', {'userId': user.id, 'name': user.display_name})


@socketio.on('join_chat')
def handle_join_chat(data):
    user = _get_socket_user()
    if not user:
        return

    chat_id = (data or {}).get('chat_id')
    if not chat_id:
        return

    chat = chat_service.get_chat(chat_id)
    # A chat that does not exist yet belongs to whoever posts to it first.
    if chat is not None and chat.user_id != user.id:
        emit('error', {'message': 'Forbidden'})
        return

    join_room(chat_room(chat_id))
    emit('joined_chat', {'chat_id': chat_id})


@socketio.on('leave_chat')
def handle_leave_chat(data):
    chat_id = (data or {}).get('chat_id')
    if chat_id:
        leave_room(chat_room(chat_id))
