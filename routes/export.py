"""Export routes: .tex download and PDF compilation."""
import io
import logging

from flask import Blueprint, request, jsonify, send_file

from services import conversion_service
from services.compiler import compile_document
from services.document_builder import build_latex_document, tex_filename
from services.errors import InvalidInput, ConversionUnavailable, CompilationFailed

logger = logging.getLogger(__name__)
export_bp = Blueprint('export', __name__)


def _json_body():
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _document_from_request():
    """(title, latex_document) from a {title, segments|input} body."""
    body = _json_body()
    title = str(body.get('title') or 'Untitled document')
    if 'segments' in body:
        segments = conversion_service.segments_from_dicts(body.get('segments'))
    else:
        result = conversion_service.convert_document(body.get('input'))
        segments = conversion_service.segments_from_dicts(result['segments'])
    return title, build_latex_document(title, segments)


@export_bp.route('/tex', methods=['POST'])
def export_tex():
    try:
        title, document = _document_from_request()
    except InvalidInput as e:
        return jsonify({'error': str(e)}), 400
    except ConversionUnavailable:
        return jsonify({'error': 'Unable to convert input.'}), 502
    return send_file(
        io.BytesIO(document.encode('utf-8')),
        mimetype='text/plain',
        as_attachment=True,
        download_name=tex_filename(title),
    )


@export_bp.route('/pdf', methods=['POST'])
def export_pdf():
    try:
        title, document = _document_from_request()
        pdf = compile_document(document, title)
    except InvalidInput as e:
        return jsonify({'error': str(e)}), 400
    except ConversionUnavailable:
        return jsonify({'error': 'Unable to convert input.'}), 502
    except CompilationFailed as e:
        logger.warning('PDF export failed: %s', e)
        return jsonify({'error': str(e), 'log': e.log_tail}), 422
    return send_file(
        io.BytesIO(pdf),
        mimetype='application/pdf',
        as_attachment=True,
        download_name=tex_filename(title)[:-len('.tex')] + '.pdf',
    )
