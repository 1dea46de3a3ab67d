import logging
from quranic_complex import db
from quranic_complex.models import Contact
from quranic_complex.services.errors import NotFound, ValidationFailed

logger = logging.getLogger(__name__)


def create_contact(data):
    contact = Contact(
        name=data['name'],
        email=data['email'],
        phone=data.get('phone') or None,
        subject=data['subject'],
        message=data['message'],
    )
    db.session.add(contact)
    db.session.commit()
    logger.info('Stored contact message %s from %s', contact.id, contact.email)
    return contact.to_dict()


def list_contacts():
    return [c.to_dict() for c in Contact.query.order_by(Contact.created_at.desc()).all()]


def delete_contact(contact_id):
    if not contact_id:
        raise ValidationFailed('Contact ID is required')
    contact = db.session.get(Contact, contact_id)
    if contact is None:
        raise NotFound('Contact not found')
    db.session.delete(contact)
    db.session.commit()
    logger.info('Deleted contact message %s', contact_id)
