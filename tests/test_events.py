from quranic_complex import socketio
from quranic_complex.ai.stream import DataStream
from quranic_complex.services import chats as chat_service

from conftest import make_user


def received_names(socket):
    return [event['name'] for event in socket.get_received()]


def test_connect_greets_signed_in_user(app, student_client, student):
    socket = socketio.test_client(app, flask_test_client=student_client)
    received = socket.get_received()
    assert received[0]['name'] == 'connected'
    assert received[0]['args'][0]['userId'] == student.id


def test_anonymous_connect_gets_nothing(app, client):
    socket = socketio.test_client(app, flask_test_client=client)
    assert socket.get_received() == []
    socket.emit('join_chat', {'chat_id': 'chat-1'})
    assert socket.get_received() == []


def test_join_chat_receives_progress_events(app, student_client, student):
    chat_service.save_chat('chat-1', student.id, 'Mine')
    socket = socketio.test_client(app, flask_test_client=student_client)
    socket.get_received()

    socket.emit('join_chat', {'chat_id': 'chat-1'})
    assert received_names(socket) == ['joined_chat']

    DataStream('chat-1').write('news_param', 'open-day', name='slug')
    received = socket.get_received()
    assert received[0]['name'] == 'chat_data'
    assert received[0]['args'][0] == {'type': 'news_param', 'content': 'open-day', 'name': 'slug'}

    socket.emit('leave_chat', {'chat_id': 'chat-1'})
    DataStream('chat-1').write('finish')
    assert socket.get_received() == []


def test_cannot_join_someone_elses_chat(app, student_client):
    owner = make_user('owner@example.com')
    chat_service.save_chat('chat-9', owner.id, 'Theirs')
    socket = socketio.test_client(app, flask_test_client=student_client)
    socket.get_received()

    socket.emit('join_chat', {'chat_id': 'chat-9'})
    received = socket.get_received()
    assert received[0]['name'] == 'error'
    assert received[0]['args'][0] == {'message': 'Forbidden'}
