"""Document conversion: extract instructions, convert them, merge in order."""
import logging

from ai import openai_client
from ai import latex_converter
from config import settings
from engine.fallback import fallback_convert
from engine.reconciler import ConversionCache, align_results, reconcile
from engine.segments import Text, Latex, Placeholder, extract_segments
from engine.segments import instructions as instruction_segments
from services.errors import InvalidInput, ConversionUnavailable

logger = logging.getLogger(__name__)


def provider_name():
    return 'openai' if openai_client.is_configured() else 'fallback'


def convert_instructions(instructions):
    """Resolve a batch of trimmed instructions.

    Returns a list the same length as instructions: normalized LaTeX, or
    None where nothing could resolve the instruction.
    """
    if not instructions:
        return []

    if not openai_client.is_configured():
        return align_results(instructions, [fallback_convert(i) for i in instructions])

    try:
        results, model, _ = latex_converter.convert_batch(instructions)
    except (ConnectionError, ValueError) as e:
        if not settings.DEGRADE_TO_FALLBACK:
            raise ConversionUnavailable(f'LaTeX conversion failed: {e}') from e
        logger.warning('Provider failed (%s); using fallback for %d instructions',
                       e, len(instructions))
        results = []
    return align_results(instructions, results)


def validate_input(value):
    if not isinstance(value, str) or not value.strip():
        raise InvalidInput('Request body must include an "input" string '
                           'with the math expression.')
    if len(value) > settings.MAX_INPUT_CHARS:
        raise InvalidInput('Input is too large.')
    return value


def convert_document(value, cache=None):
    """Convert a whole document.

    Returns {'segments': [{'type': 'latex'|'text', 'content': ...}, ...]}.
    Instructions that cannot be resolved are left out.
    """
    validate_input(value)
    segments = extract_segments(value, settings.CONVERSION_DEFAULTS['delimiter'])
    logger.debug('Converting %d segments, %d instructions',
                 len(segments), len(instruction_segments(segments)))
    rendered = reconcile(segments, cache if cache is not None else ConversionCache(),
                         convert_instructions)
    return {'segments': segments_to_dicts(rendered)}


def segment_to_dict(segment):
    if isinstance(segment, Text):
        return {'type': 'text', 'content': segment.content}
    if isinstance(segment, Latex):
        return {'type': 'latex', 'content': segment.content}
    if isinstance(segment, Placeholder):
        return {'type': 'placeholder', 'content': segment.content}
    raise TypeError(f'Unexpected segment {segment!r}')


def segments_to_dicts(segments):
    return [segment_to_dict(s) for s in segments]


def segments_from_dicts(items):
    """Inverse of segments_to_dicts for client-supplied segment lists."""
    if items is None:
        return []
    if not isinstance(items, list):
        raise InvalidInput('"segments" must be a list.')
    segments = []
    for item in items:
        kind = item.get('type') if isinstance(item, dict) else None
        content = item.get('content') if isinstance(item, dict) else None
        if not isinstance(content, str):
            raise InvalidInput('Each segment needs a string "content".')
        if kind == 'text':
            segments.append(Text(content))
        elif kind == 'latex':
            segments.append(Latex(content))
        elif kind == 'placeholder':
            segments.append(Placeholder(content))
        else:
            raise InvalidInput(f'Unknown segment type: {kind!r}')
    return segments
