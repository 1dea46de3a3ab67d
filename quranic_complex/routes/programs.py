from flask import Blueprint, jsonify
from quranic_complex.decorators import api_role_required
from quranic_complex.forms import ProgramForm, ProgramUpdateForm, submitted_data
from quranic_complex.routes.api import locale_arg, validate_or_raise, uploaded
from quranic_complex.services import programs as program_service

bp = Blueprint('programs', __name__, url_prefix='/api/programs')


@bp.route('', methods=['GET'])
def list_programs():
    return jsonify(program_service.list_programs(locale_arg()))


@bp.route('', methods=['POST'])
@api_role_required('ADMIN')
def create_program():
    locale = locale_arg()
    form = ProgramForm()
    validate_or_raise(form, 'Invalid program data')
    program = program_service.create_program(submitted_data(form), locale, image=uploaded('image'))
    return jsonify(program), 201


@bp.route('/<slug>', methods=['GET'])
def get_program(slug):
    return jsonify(program_service.get_program(slug, locale_arg()))


@bp.route('/<program_id>', methods=['PATCH'])
@api_role_required('ADMIN')
def update_program(program_id):
    locale = locale_arg()
    form = ProgramUpdateForm()
    validate_or_raise(form, 'Invalid program data')
    program = program_service.update_program(
        program_id,
        submitted_data(form, exclude=('remove_image',)),
        locale,
        image=uploaded('image'),
        remove_image=form.remove_image.data,
    )
    return jsonify(program)


@bp.route('/<program_id>', methods=['DELETE'])
@api_role_required('ADMIN')
def delete_program(program_id):
    program_service.delete_program(program_id)
    return jsonify({'message': 'Program deleted successfully'})
