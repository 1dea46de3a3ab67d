import logging
from quranic_complex import db
from quranic_complex.models import Payment
from quranic_complex.services.errors import NotFound, ValidationFailed
from quranic_complex.services.storage import staged_image

logger = logging.getLogger(__name__)

FOLDER = 'payments'


def create_payment(user_id, image, description=None):
    if image is None:
        raise ValidationFailed('Image is required')
    with staged_image(None, upload=image, folder=FOLDER) as image_url:
        payment = Payment(user_id=user_id, image=image_url, description=description or None)
        db.session.add(payment)
        db.session.commit()
    logger.info('User %s submitted payment %s', user_id, payment.id)
    return payment.to_dict()


def list_payments(user_id=None):
    """All payments, newest first; only the user's own when user_id is given."""
    query = Payment.query
    if user_id is not None:
        query = query.filter_by(user_id=user_id)
    return [p.to_dict() for p in query.order_by(Payment.created_at.desc()).all()]


def set_payment_status(payment_id, status):
    if status not in Payment.STATUSES:
        raise ValidationFailed('Invalid status')
    payment = db.session.get(Payment, payment_id)
    if payment is None:
        raise NotFound('Payment not found')
    payment.status = status
    db.session.commit()
    logger.info('Payment %s is now %s', payment.id, status)
    return payment.to_dict()
