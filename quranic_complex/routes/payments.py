from flask import Blueprint, request, jsonify
from quranic_complex.decorators import api_auth_required, api_role_required, get_current_user
from quranic_complex.routes.api import uploaded
from quranic_complex.services import payments as payment_service

bp = Blueprint('payments', __name__, url_prefix='/api/payments')


@bp.route('', methods=['POST'])
@api_auth_required
def create_payment():
    payment = payment_service.create_payment(get_current_user().id, uploaded('image'),
                                             request.form.get('description'))
    return jsonify(payment), 201


@bp.route('', methods=['GET'])
@api_auth_required
def list_payments():
    user = get_current_user()
    return jsonify(payment_service.list_payments(None if user.is_admin() else user.id))


@bp.route('/<payment_id>', methods=['PUT'])
@api_role_required('ADMIN')
def update_payment(payment_id):
    payload = request.get_json(silent=True) or {}
    return jsonify(payment_service.set_payment_status(payment_id, payload.get('status')))
