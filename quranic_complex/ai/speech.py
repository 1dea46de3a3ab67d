import io
import wave
import logging
from collections import namedtuple
from flask import current_app
from google.genai import types

from quranic_complex.ai.client import generate_content
from quranic_complex.services.errors import ServiceError

logger = logging.getLogger(__name__)

MAX_TEXT_LENGTH = 5000
DEFAULT_SAMPLE_RATE = 24000

GeneratedSpeech = namedtuple('GeneratedSpeech', ['data', 'mime_type'])


class SpeechGenerationError(ServiceError):
    status_code = 502


def _sample_rate(mime_type):
    """Sample rate from a mime type like 'audio/L16;codec=pcm;rate=24000'."""
    for param in (mime_type or '').split(';')[1:]:
        key, _, value = param.strip().partition('=')
        if key == 'rate' and value.isdigit():
            return int(value)
    return DEFAULT_SAMPLE_RATE


def pcm_to_wav(pcm, sample_rate=DEFAULT_SAMPLE_RATE):
    """Wrap 16 bit mono PCM in a WAV container."""
    buffer = io.BytesIO()
    with wave.open(buffer, 'wb') as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(pcm)
    return buffer.getvalue()


def generate_speech(text, voice=None):
    if not current_app.config.get('GOOGLE_GENERATIVE_AI_API_KEY'):
        raise SpeechGenerationError('GOOGLE_GENERATIVE_AI_API_KEY is not configured')
    if not text or not text.strip():
        raise SpeechGenerationError('No text provided for speech generation.')
    if len(text) > MAX_TEXT_LENGTH:
        raise SpeechGenerationError(f'Text must be at most {MAX_TEXT_LENGTH} characters')

    voice = voice or current_app.config['TTS_DEFAULT_VOICE']
    try:
        response = generate_content(
            model=current_app.config['GEMINI_TTS_MODEL'],
            contents=text,
            config=types.GenerateContentConfig(
                response_modalities=['AUDIO'],
                speech_config=types.SpeechConfig(
                    voice_config=types.VoiceConfig(
                        prebuilt_voice_config=types.PrebuiltVoiceConfig(voice_name=voice),
                    ),
                ),
            ),
        )
    except ServiceError:
        raise
    except Exception as e:
        logger.exception('Speech generation request failed')
        raise SpeechGenerationError(f'Speech generation failed: {e}') from e

    candidates = response.candidates or []
    parts = candidates[0].content.parts if candidates and candidates[0].content else []
    for part in parts or []:
        if part.inline_data is not None and part.inline_data.data:
            audio = part.inline_data
            logger.info('Generated %d bytes of %s speech with voice %s', len(audio.data), audio.mime_type, voice)
            if audio.mime_type and audio.mime_type.startswith('audio/wav'):
                return GeneratedSpeech(audio.data, 'audio/wav')
            return GeneratedSpeech(pcm_to_wav(audio.data, _sample_rate(audio.mime_type)), 'audio/wav')

    raise SpeechGenerationError('No audio was generated')
