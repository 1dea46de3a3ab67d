from flask import Blueprint, request, jsonify
from quranic_complex.decorators import api_role_required
from quranic_complex.forms import DonationApiForm, submitted_data
from quranic_complex.routes.api import validate_or_raise, uploaded
from quranic_complex.services import donations as donation_service

bp = Blueprint('donations', __name__, url_prefix='/api/donation')


@bp.route('', methods=['POST'])
def create_donation():
    form = DonationApiForm(formdata=None, data=request.get_json(silent=True) or {})
    validate_or_raise(form, 'Invalid donation data')
    return jsonify(donation_service.create_donation(submitted_data(form))), 201


@bp.route('', methods=['GET'])
@api_role_required('ADMIN')
def list_donations():
    return jsonify(donation_service.list_donations())


@bp.route('/<donation_id>', methods=['PUT'])
@api_role_required('ADMIN')
def update_donation(donation_id):
    payload = request.get_json(silent=True) or {}
    return jsonify(donation_service.set_receipt(donation_id, payload.get('receipt')))


@bp.route('/upload-receipt', methods=['POST'])
def upload_receipt():
    donation = donation_service.upload_receipt(request.form.get('donationId'), uploaded('file'))
    return jsonify({'donation': donation})
