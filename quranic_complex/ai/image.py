import io
import logging
from collections import namedtuple
from flask import current_app
from google.genai import types
from werkzeug.datastructures import FileStorage

from quranic_complex.ai.client import generate_content
from quranic_complex.services.errors import ServiceError

logger = logging.getLogger(__name__)


class ImageGenerationError(ServiceError):
    status_code = 502


class GeneratedImage(namedtuple('GeneratedImage', ['data', 'mime_type', 'text'])):

    def as_upload(self, basename):
        """Wrap the image bytes like an uploaded file so services can store it."""
        extension = 'png' if self.mime_type == 'image/png' else self.mime_type.split('/')[-1]
        return FileStorage(stream=io.BytesIO(self.data), filename=f'{basename}.{extension}',
                           content_type=self.mime_type)


def generate_image(prompt):
    if not current_app.config.get('GOOGLE_GENERATIVE_AI_API_KEY'):
        raise ImageGenerationError('GOOGLE_GENERATIVE_AI_API_KEY is not configured')
    if not prompt or not prompt.strip():
        raise ImageGenerationError('Prompt must not be empty')

    try:
        response = generate_content(
            model=current_app.config['GEMINI_IMAGE_MODEL'],
            contents=prompt,
            config=types.GenerateContentConfig(response_modalities=['TEXT', 'IMAGE']),
        )
    except ServiceError:
        raise
    except Exception as e:
        logger.exception('Image generation request failed')
        raise ImageGenerationError(f'Image generation failed: {e}') from e

    text = None
    candidates = response.candidates or []
    parts = candidates[0].content.parts if candidates and candidates[0].content else []
    for part in parts or []:
        if part.inline_data is not None and part.inline_data.data:
            logger.info('Generated %s image (%d bytes)', part.inline_data.mime_type, len(part.inline_data.data))
            return GeneratedImage(part.inline_data.data, part.inline_data.mime_type or 'image/png', text)
        if part.text:
            text = part.text

    raise ImageGenerationError('No image was generated')
