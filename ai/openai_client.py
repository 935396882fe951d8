"""OpenAI-compatible chat completions client."""
import json
import logging
import time
import urllib.request
import urllib.error

from config import settings

logger = logging.getLogger(__name__)


def is_configured():
    return bool(settings.OPENAI_API_KEY)


def _message_text(result):
    """Pull the assistant text out of a chat completion body."""
    choices = result.get('choices') or []
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ''
    message = choices[0].get('message')
    content = (message.get('content') if isinstance(message, dict) else None) or ''
    if isinstance(content, list):
        # Content parts: [{"type": "text", "text": "..."}]
        content = '\n'.join(
            part.get('text', '') if isinstance(part, dict) else str(part)
            for part in content
        )
    return content


def ask(system_prompt, user_prompt, max_tokens=2048, temperature=0.2):
    """Send a chat completion request.

    Returns (response_text, model_used, full_prompt).
    """
    full_prompt = f"SYSTEM: {system_prompt}\n\nUSER: {user_prompt}"
    data = json.dumps({
        'model': settings.OPENAI_MODEL,
        'temperature': temperature,
        'max_tokens': max_tokens,
        'messages': [
            {'role': 'system', 'content': system_prompt},
            {'role': 'user', 'content': user_prompt},
        ],
    }).encode()

    req = urllib.request.Request(
        f"{settings.OPENAI_BASE_URL.rstrip('/')}/chat/completions",
        data=data,
        headers={
            'Content-Type': 'application/json',
            'Authorization': f'Bearer {settings.OPENAI_API_KEY}',
        },
    )

    try:
        t0 = time.monotonic()
        resp = urllib.request.urlopen(req, timeout=settings.OPENAI_TIMEOUT)
        result = json.loads(resp.read())
        elapsed = time.monotonic() - t0
    except urllib.error.HTTPError as e:
        logger.error('OpenAI returned HTTP %d: %s', e.code, e.reason)
        raise ConnectionError(f"OpenAI request failed with HTTP {e.code}") from e
    except urllib.error.URLError as e:
        logger.error('OpenAI request failed: %s', e)
        raise ConnectionError(f"Cannot reach {settings.OPENAI_BASE_URL}: {e}") from e
    except OSError as e:
        # Read timeouts and resets surface here rather than as URLError
        logger.error('OpenAI response failed: %s', e)
        raise ConnectionError(f"OpenAI response failed: {e}") from e

    if not isinstance(result, dict):
        raise ValueError(f'Unexpected OpenAI response body: {type(result).__name__}')

    text = _message_text(result)
    model = result.get('model', settings.OPENAI_MODEL)
    tokens = (result.get('usage') or {}).get('completion_tokens', 0)
    logger.info('OpenAI %s: %d chars, %d tokens, %.1fs',
                model, len(text), tokens, elapsed)
    return text, model, full_prompt
