from flask import Blueprint, request, jsonify
from quranic_complex.decorators import api_role_required
from quranic_complex.forms import ContactApiForm, form_errors, submitted_data
from quranic_complex.services import contacts as contact_service

bp = Blueprint('contact', __name__, url_prefix='/api/contact')


@bp.route('', methods=['POST'])
def create_contact():
    form = ContactApiForm(formdata=None, data=request.get_json(silent=True) or {})
    if not form.validate():
        return jsonify({'error': form_errors(form)}), 400
    contact_service.create_contact(submitted_data(form))
    return jsonify({'success': True, 'message': 'Message sent successfully'}), 201


@bp.route('', methods=['GET'])
@api_role_required('ADMIN')
def list_contacts():
    return jsonify(contact_service.list_contacts())


@bp.route('', methods=['DELETE'])
@api_role_required('ADMIN')
def delete_contact():
    contact_service.delete_contact(request.args.get('id'))
    return jsonify({'success': True, 'message': 'Contact message deleted successfully'})
