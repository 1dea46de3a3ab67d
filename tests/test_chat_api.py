from unittest.mock import patch
import pytest
from google.genai import types

from quranic_complex import db
from quranic_complex.models import Chat, Message, Document, Suggestion
from quranic_complex.routes.chat import PANEL_COOKIE
from quranic_complex.services import chats as chat_service

from conftest import make_user, sign_in


def reply(text):
    return types.GenerateContentResponse(candidates=[types.Candidate(
        content=types.Content(role='model', parts=[types.Part.from_text(text=text)]))])


@pytest.fixture
def model():
    with patch('quranic_complex.routes.chat.generate_title', return_value='Greeting'), \
            patch('quranic_complex.ai.agent.generate_content', return_value=reply('Salam! How can I help?')) as generate:
        yield generate


def send(client, text='Hello', chat_id='chat-1', **extra):
    return client.post('/api/chat', json=dict({'id': chat_id, 'message': text}, **extra))


def test_chat_requires_login(client):
    assert send(client).status_code == 401
    assert client.get('/api/history').status_code == 401


def test_chat_creates_chat_and_stores_messages(student_client, student, model):
    response = send(student_client, selectedChatModel='chat-model')
    body = response.get_json()

    assert response.status_code == 200
    assert body['chat']['title'] == 'Greeting'
    assert body['chat']['userId'] == student.id
    assert body['message']['parts'] == [{'type': 'text', 'text': 'Salam! How can I help?'}]
    assert [m.role for m in chat_service.get_messages('chat-1')] == ['user', 'assistant']

    sent = model.call_args.kwargs['contents']
    assert sent[-1].parts[0].text == 'Hello'


def test_chat_accepts_message_list(student_client, model):
    response = student_client.post('/api/chat', json={
        'id': 'chat-2',
        'messages': [
            {'role': 'user', 'parts': [{'type': 'text', 'text': 'first'}]},
            {'role': 'user', 'parts': [{'type': 'text', 'text': 'second'}]},
        ],
    })
    assert response.status_code == 200
    assert chat_service.get_messages('chat-2')[0].text == 'second'


def test_chat_validates_request(student_client, model):
    response = student_client.post('/api/chat', json={'id': 'chat-1'})
    assert response.status_code == 400
    assert Chat.query.count() == 0


def test_chat_owned_by_someone_else(app, student_client, model):
    send(student_client)
    other = sign_in(app.test_client(), make_user('other@example.com'))
    assert send(other).status_code == 403
    assert other.get('/api/chat/chat-1/messages').status_code == 403


def test_history_and_delete(student_client, model):
    send(student_client, chat_id='chat-a')
    send(student_client, chat_id='chat-b')
    assert {c['id'] for c in student_client.get('/api/history').get_json()} == {'chat-a', 'chat-b'}

    assert student_client.delete('/api/chat').status_code == 400
    assert student_client.delete('/api/chat?id=chat-a').status_code == 200
    assert student_client.get('/api/chat/chat-a/messages').status_code == 404
    assert Message.query.filter_by(chat_id='chat-a').count() == 0


def test_vote(student_client, model):
    message_id = send(student_client).get_json()['message']['id']

    response = student_client.patch('/api/vote', json={'chatId': 'chat-1', 'messageId': message_id, 'type': 'up'})
    assert response.get_json() == {'chatId': 'chat-1', 'messageId': message_id, 'isUpvoted': True}

    student_client.patch('/api/vote', json={'chatId': 'chat-1', 'messageId': message_id, 'type': 'down'})
    votes = student_client.get('/api/vote?chatId=chat-1').get_json()
    assert votes == [{'chatId': 'chat-1', 'messageId': message_id, 'isUpvoted': False}]

    bad = student_client.patch('/api/vote', json={'chatId': 'chat-1', 'messageId': message_id, 'type': 'meh'})
    assert bad.status_code == 400
    assert student_client.get('/api/vote').status_code == 400


def test_ai_panel_reuses_chat(student_client):
    first = student_client.get('/api/ai-panel')
    assert PANEL_COOKIE in first.headers['Set-Cookie']
    chat_id = first.get_json()['chat']['id']

    second = student_client.get('/api/ai-panel').get_json()
    assert second['chat']['id'] == chat_id
    assert second['chat']['title'] == 'Ai Panel Assistant'
    assert Chat.query.count() == 1


def test_document_and_suggestions_are_private(app, student_client, student):
    document = Document(id='doc-1', title='Notes', kind='text', content='v1', user_id=student.id)
    db.session.add(document)
    db.session.commit()
    db.session.add(Suggestion(document_id='doc-1', document_created_at=document.created_at,
                              original_text='v1', suggested_text='v2', user_id=student.id))
    db.session.commit()

    assert student_client.get('/api/document?id=doc-1').get_json()[0]['content'] == 'v1'
    assert student_client.get('/api/suggestions?documentId=doc-1').get_json()[0]['suggestedText'] == 'v2'
    assert student_client.get('/api/document?id=missing').status_code == 404

    other = sign_in(app.test_client(), make_user('other@example.com'))
    assert other.get('/api/document?id=doc-1').status_code == 403
    assert other.get('/api/suggestions?documentId=doc-1').status_code == 403
