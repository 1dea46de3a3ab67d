import logging
from flask import Blueprint, request, jsonify
from quranic_complex.ai.agent import generate_title, run_agent
from quranic_complex.ai.stream import ChatContext
from quranic_complex.decorators import api_auth_required, get_current_user
from quranic_complex.forms import ChatRequestForm
from quranic_complex.routes.api import validate_or_raise
from quranic_complex.services import chats as chat_service
from quranic_complex.services.errors import ValidationFailed, NotFound

logger = logging.getLogger(__name__)

bp = Blueprint('chat', __name__, url_prefix='/api')

PANEL_COOKIE = 'dashboard:chat'


def _user_text(payload):
    """Text of the new user message from {message} or the last of {messages}."""
    message = payload.get('message')
    if message is None:
        messages = [m for m in payload.get('messages') or [] if isinstance(m, dict) and m.get('role') == 'user']
        message = messages[-1] if messages else None
    if isinstance(message, dict):
        parts = message.get('parts') or []
        text = ''.join(p.get('text', '') for p in parts if isinstance(p, dict) and p.get('type') == 'text')
        return text or message.get('content')
    return message


@bp.route('/chat', methods=['POST'])
@api_auth_required
def chat():
    payload = request.get_json(silent=True) or {}
    form = ChatRequestForm(formdata=None, data={
        'chat_id': payload.get('id'),
        'message': _user_text(payload),
        'selected_chat_model': payload.get('selectedChatModel') or 'agent-model',
    })
    validate_or_raise(form, 'Invalid chat request')
    user = get_current_user()
    chat_id = form.chat_id.data

    chat = chat_service.get_chat(chat_id)
    if chat is None:
        chat = chat_service.save_chat(chat_id, user.id, generate_title(form.message.data))
    elif chat.user_id != user.id:
        return jsonify({'message': 'Forbidden'}), 403

    chat_service.save_message(chat.id, 'user', [{'type': 'text', 'text': form.message.data}])

    ctx = ChatContext(user, chat.id)
    parts = run_agent(ctx, chat_service.get_messages(chat.id), form.selected_chat_model.data)
    if not parts:
        parts = [{'type': 'text', 'text': ''}]
    assistant = chat_service.save_message(chat.id, 'assistant', parts)

    return jsonify({
        'chat': chat.to_dict(),
        'message': assistant.to_dict(),
        'events': ctx.stream.events,
    })


@bp.route('/chat', methods=['DELETE'])
@api_auth_required
def delete_chat():
    chat_id = request.args.get('id')
    if not chat_id:
        raise ValidationFailed('Chat id is required')
    chat_service.delete_chat(chat_id, get_current_user().id)
    return jsonify({'message': 'Chat deleted'})


@bp.route('/chat/<chat_id>/messages', methods=['GET'])
@api_auth_required
def chat_messages(chat_id):
    chat = chat_service.get_owned_chat(chat_id, get_current_user().id)
    return jsonify([m.to_dict() for m in chat_service.get_messages(chat.id)])


@bp.route('/history', methods=['GET'])
@api_auth_required
def history():
    return jsonify([c.to_dict() for c in chat_service.list_chats(get_current_user().id)])


@bp.route('/vote', methods=['GET'])
@api_auth_required
def get_votes():
    chat_id = request.args.get('chatId')
    if not chat_id:
        raise ValidationFailed('chatId is required')
    chat = chat_service.get_owned_chat(chat_id, get_current_user().id)
    return jsonify([v.to_dict() for v in chat_service.get_votes(chat.id)])


@bp.route('/vote', methods=['PATCH'])
@api_auth_required
def vote():
    payload = request.get_json(silent=True) or {}
    chat_id, message_id, vote_type = payload.get('chatId'), payload.get('messageId'), payload.get('type')
    if not chat_id or not message_id or not vote_type:
        raise ValidationFailed('chatId, messageId and type are required')
    chat_service.get_owned_chat(chat_id, get_current_user().id)
    result = chat_service.vote_message(chat_id, message_id, vote_type)
    return jsonify(result.to_dict())


@bp.route('/ai-panel', methods=['GET'])
@api_auth_required
def ai_panel():
    user = get_current_user()
    chat = chat_service.get_or_create_panel_chat(request.cookies.get(PANEL_COOKIE), user.id)
    response = jsonify({
        'chat': chat.to_dict(),
        'messages': [m.to_dict() for m in chat_service.get_messages(chat.id)],
    })
    response.set_cookie(PANEL_COOKIE, chat.id, httponly=True, samesite='Lax')
    return response


@bp.route('/document', methods=['GET'])
@api_auth_required
def document():
    document_id = request.args.get('id')
    if not document_id:
        raise ValidationFailed('Document id is required')
    versions = chat_service.get_documents(document_id)
    if not versions:
        raise NotFound('Document not found')
    if versions[0].user_id != get_current_user().id:
        return jsonify({'message': 'Forbidden'}), 403
    return jsonify([d.to_dict() for d in versions])


@bp.route('/suggestions', methods=['GET'])
@api_auth_required
def suggestions():
    document_id = request.args.get('documentId')
    if not document_id:
        raise ValidationFailed('documentId is required')
    items = chat_service.get_suggestions(document_id)
    if items and items[0].user_id != get_current_user().id:
        return jsonify({'message': 'Forbidden'}), 403
    return jsonify([s.to_dict() for s in items])
