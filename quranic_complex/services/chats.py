import logging
from quranic_complex import db
from quranic_complex.models import Chat, Message, Vote, Document, Suggestion, new_id
from quranic_complex.services.errors import Forbidden, NotFound, ValidationFailed

logger = logging.getLogger(__name__)

PANEL_CHAT_TITLE = 'Ai Panel Assistant'


def get_chat(chat_id):
    return db.session.get(Chat, chat_id)


def get_owned_chat(chat_id, user_id):
    chat = get_chat(chat_id)
    if chat is None:
        raise NotFound('Chat not found')
    if chat.user_id != user_id:
        raise Forbidden('Unauthorized')
    return chat


def save_chat(chat_id, user_id, title, visibility='private'):
    chat = Chat(id=chat_id, user_id=user_id, title=title, visibility=visibility)
    db.session.add(chat)
    db.session.commit()
    logger.info('Created chat %s for user %s', chat_id, user_id)
    return chat


def delete_chat(chat_id, user_id):
    chat = get_owned_chat(chat_id, user_id)
    db.session.delete(chat)
    db.session.commit()
    logger.info('Deleted chat %s', chat_id)


def list_chats(user_id):
    return Chat.query.filter_by(user_id=user_id).order_by(Chat.created_at.desc()).all()


def get_or_create_panel_chat(chat_id, user_id):
    """Reuse the dashboard panel chat if the user owns it, else start a new one."""
    if chat_id:
        chat = get_chat(chat_id)
        if chat is not None and chat.user_id == user_id:
            return chat
    return save_chat(new_id(), user_id, PANEL_CHAT_TITLE)


def save_message(chat_id, role, parts, attachments=None, message_id=None):
    message = Message(id=message_id or new_id(), chat_id=chat_id, role=role,
                      parts=parts, attachments=attachments or [])
    db.session.add(message)
    db.session.commit()
    return message


def get_messages(chat_id):
    return Message.query.filter_by(chat_id=chat_id).order_by(Message.created_at.asc()).all()


def vote_message(chat_id, message_id, vote_type):
    if vote_type not in ('up', 'down'):
        raise ValidationFailed('Vote type must be "up" or "down"')
    message = db.session.get(Message, message_id)
    if message is None or message.chat_id != chat_id:
        raise NotFound('Message not found')

    vote = db.session.get(Vote, (chat_id, message_id))
    if vote is None:
        vote = Vote(chat_id=chat_id, message_id=message_id)
        db.session.add(vote)
    vote.is_upvoted = vote_type == 'up'
    db.session.commit()
    return vote


def get_votes(chat_id):
    return Vote.query.filter_by(chat_id=chat_id).all()


def get_documents(document_id):
    return Document.query.filter_by(id=document_id).order_by(Document.created_at.asc()).all()


def get_document(document_id):
    """Latest saved version of a document."""
    return (Document.query.filter_by(id=document_id)
            .order_by(Document.created_at.desc())
            .first())


def get_suggestions(document_id):
    return Suggestion.query.filter_by(document_id=document_id).order_by(Suggestion.created_at.asc()).all()
