from flask import Blueprint, request, jsonify
from quranic_complex.ai.speech import generate_speech
from quranic_complex.decorators import api_auth_required
from quranic_complex.forms import SpeechForm
from quranic_complex.routes.api import validate_or_raise
from quranic_complex.services.storage import upload_file

bp = Blueprint('speech', __name__, url_prefix='/api/generate-speech')


def speak(text, voice=None):
    """Generate speech for text, store it and return the audio URL."""
    speech = generate_speech(text, voice)
    return upload_file(speech.data, 'speech.wav', 'speech', speech.mime_type)


@bp.route('', methods=['POST'])
@api_auth_required
def generate():
    form = SpeechForm(formdata=None, data=request.get_json(silent=True) or {})
    validate_or_raise(form, 'Missing text in request body')
    return jsonify({'audioUrl': speak(form.text.data, form.voice.data or None)})
