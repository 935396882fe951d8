"""Conversion API: stateless conversion, preview and insert snippets."""
import logging

from flask import Blueprint, request, jsonify

from engine.reconciler import ConversionCache, reconcile
from engine.segments import extract_segments
from config import settings
from services import conversion_service, instruction_snippets
from services.conversion_service import validate_input, convert_instructions
from services.document_builder import outline
from services.errors import InvalidInput, ConversionUnavailable
from services.math_renderer import render_segments_html

logger = logging.getLogger(__name__)
convert_bp = Blueprint('convert', __name__)


def _json_body():
    """The request JSON when it is an object, else {}."""
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


@convert_bp.route('/health')
def health():
    return jsonify({'status': 'ok', 'provider': conversion_service.provider_name()})


@convert_bp.route('/convert', methods=['POST'])
def convert():
    body = _json_body()
    try:
        result = conversion_service.convert_document(body.get('input'))
    except InvalidInput as e:
        return jsonify({'error': str(e)}), 400
    except ConversionUnavailable as e:
        logger.error('Conversion failed: %s', e)
        return jsonify({
            'error': 'Failed to convert input to LaTeX. Check server logs for details.',
        }), 502
    return jsonify(result)


@convert_bp.route('/preview', methods=['POST'])
def preview():
    """Convert and render the preview pane in one round trip."""
    body = _json_body()
    try:
        value = validate_input(body.get('input'))
        segments = extract_segments(value, settings.CONVERSION_DEFAULTS['delimiter'])
        rendered = reconcile(segments, ConversionCache(), convert_instructions)
    except InvalidInput as e:
        return jsonify({'error': str(e)}), 400
    except ConversionUnavailable as e:
        logger.error('Preview conversion failed: %s', e)
        return jsonify({'error': 'Unable to convert input.'}), 502
    return jsonify({
        'html': render_segments_html(rendered),
        'segments': conversion_service.segments_to_dicts(rendered),
        'outline': outline(rendered),
    })


@convert_bp.route('/snippets/<kind>', methods=['POST'])
def snippet(kind):
    """Build an insert-panel instruction (table, layout, equation)."""
    body = _json_body()
    try:
        if kind == 'table':
            text = instruction_snippets.table_instruction(
                body.get('columns', 3), body.get('rows', 4),
                body.get('headers', ''), body.get('caption', ''))
        elif kind == 'layout':
            text = instruction_snippets.layout_instruction(
                body.get('columns', 2), body.get('primary', ''),
                body.get('secondary', ''), body.get('margin', ''))
        elif kind == 'equation':
            text = instruction_snippets.equation_instruction(
                body.get('placement', 'center'), body.get('label', ''),
                body.get('anchor', ''))
        else:
            return jsonify({'error': f'Unknown snippet kind: {kind}'}), 400
    except ValueError as e:
        return jsonify({'error': str(e)}), 400
    return jsonify({'snippet': text})
