import logging
from flask import current_app
from quranic_complex import db
from quranic_complex.models import Donation
from quranic_complex.services import email as email_service
from quranic_complex.services.errors import NotFound, ServiceError, ValidationFailed
from quranic_complex.services.storage import staged_image, discard_file

logger = logging.getLogger(__name__)

FOLDER = 'receipts'


def _require_donation(donation_id):
    donation = db.session.get(Donation, donation_id) if donation_id else None
    if donation is None:
        raise NotFound('Donation not found')
    return donation


def create_donation(data):
    donation = Donation(
        name=data['name'],
        email=data['email'],
        phone=data.get('phone') or None,
        amount=data['amount'],
    )
    db.session.add(donation)
    db.session.commit()
    logger.info('Recorded donation %s of %s from %s', donation.id, donation.amount, donation.email)
    return donation.to_dict()


def list_donations():
    return [d.to_dict() for d in Donation.query.order_by(Donation.created_at.desc()).all()]


def get_donation(donation_id):
    return _require_donation(donation_id).to_dict()


def set_receipt(donation_id, receipt_url):
    """Point a donation at a receipt stored elsewhere."""
    donation = _require_donation(donation_id)
    if not receipt_url:
        raise ValidationFailed('Receipt is required')
    previous = donation.receipt
    donation.receipt = receipt_url
    db.session.commit()
    if previous and previous != receipt_url:
        discard_file(previous)
    return donation.to_dict()


def upload_receipt(donation_id, file):
    """Store the transfer receipt of a donation and thank the donor by email.

    A failed thank-you email is logged; the receipt stays saved.
    """
    donation = _require_donation(donation_id)
    if file is None:
        raise ValidationFailed('No file provided')

    with staged_image(donation.receipt, upload=file, folder=FOLDER,
                      allowed_types=current_app.config['RECEIPT_TYPES']) as receipt_url:
        donation.receipt = receipt_url
        db.session.commit()
    logger.info('Stored receipt for donation %s', donation.id)

    try:
        email_service.send_thanks_email(donation.email, donation.name)
    except ServiceError:
        logger.warning('Thank-you email for donation %s was not sent', donation.id)
    return donation.to_dict()
