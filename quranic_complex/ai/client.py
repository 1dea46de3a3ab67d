import logging
from flask import current_app
from tenacity import retry, stop_after_attempt, wait_exponential, retry_if_exception

from google import genai

from quranic_complex.services.errors import ServiceError

logger = logging.getLogger(__name__)

_client = None
_client_key = None


class AIUnavailable(ServiceError):
    status_code = 503


def get_client():
    """Gemini client for the configured API key, created on first use."""
    global _client, _client_key
    api_key = current_app.config.get('GOOGLE_GENERATIVE_AI_API_KEY')
    if not api_key:
        raise AIUnavailable('GOOGLE_GENERATIVE_AI_API_KEY is not configured')
    if _client is None or _client_key != api_key:
        _client = genai.Client(api_key=api_key)
        _client_key = api_key
    return _client


def is_rate_limit_error(exception: BaseException) -> bool:
    error_msg = str(exception)
    return (
        "429" in error_msg
        or "RESOURCE_EXHAUSTED" in error_msg
        or "quota" in error_msg.lower()
        or "rate limit" in error_msg.lower()
        or (hasattr(exception, 'code') and exception.code == 429)
    )


@retry(
    stop=stop_after_attempt(5),
    wait=wait_exponential(multiplier=1, min=2, max=60),
    retry=retry_if_exception(is_rate_limit_error),
    reraise=True
)
def generate_content(model, contents, config=None):
    logger.debug('Calling %s', model)
    return get_client().models.generate_content(model=model, contents=contents, config=config)
