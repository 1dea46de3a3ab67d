from flask import Blueprint, jsonify
from quranic_complex.decorators import api_role_required
from quranic_complex.forms import EventForm
from quranic_complex.routes.api import locale_arg, validate_or_raise, uploaded
from quranic_complex.services import events as event_service

bp = Blueprint('events', __name__, url_prefix='/api/events')


def _event_data(form):
    return {'date': form.date.data, 'time': form.time.data, 'location': form.location.data}


@bp.route('', methods=['GET'])
def list_events():
    return jsonify(event_service.list_upcoming_events(locale_arg(required=True)))


@bp.route('', methods=['POST'])
@api_role_required('ADMIN')
def create_event():
    form = EventForm()
    validate_or_raise(form, 'Invalid event data')
    event = event_service.create_event(_event_data(form), form.translations.data, uploaded('image'))
    return jsonify(event), 201


@bp.route('/<event_id>', methods=['GET'])
def get_event(event_id):
    return jsonify(event_service.get_event(event_id))


@bp.route('/<event_id>', methods=['PUT'])
@api_role_required('ADMIN')
def update_event(event_id):
    form = EventForm()
    validate_or_raise(form, 'Invalid event data')
    event = event_service.update_event(event_id, _event_data(form), form.translations.data, uploaded('image'))
    return jsonify(event)


@bp.route('/<event_id>', methods=['DELETE'])
@api_role_required('ADMIN')
def delete_event(event_id):
    event_service.delete_event(event_id)
    return jsonify({'message': 'Event deleted successfully'})
