"""Editor session routes: live editing with a session-scoped LaTeX cache."""
import logging

from flask import Blueprint, request, jsonify

from services import editor_session

logger = logging.getLogger(__name__)
session_bp = Blueprint('session', __name__)


def _not_found():
    return jsonify({'error': 'Unknown session'}), 404


@session_bp.route('/start', methods=['POST'])
def start():
    session_id = editor_session.create_session()
    return jsonify({'session_id': session_id}), 201


@session_bp.route('/<session_id>', methods=['GET'])
def view(session_id):
    sess = editor_session.get_session(session_id)
    if sess is None:
        return _not_found()
    return jsonify(sess.view())


@session_bp.route('/<session_id>/edit', methods=['POST'])
def edit(session_id):
    """Record an edit; cached instructions render at once, the rest as placeholders."""
    sess = editor_session.get_session(session_id)
    if sess is None:
        return _not_found()
    body = request.get_json(silent=True)
    if body is None:
        body = {}
    value = body.get('input', '') if isinstance(body, dict) else None
    if not isinstance(value, str):
        return jsonify({'error': 'Request body must be an object with an "input" string.'}), 400
    return jsonify(sess.edit(value))


@session_bp.route('/<session_id>/reconcile', methods=['POST'])
def reconcile(session_id):
    """Run the pending batch once the edit has settled."""
    sess = editor_session.get_session(session_id)
    if sess is None:
        return _not_found()
    body = request.get_json(silent=True)
    generation = body.get('generation') if isinstance(body, dict) else None
    if generation is not None and generation != sess.generation:
        # Client is behind; its edit has been superseded
        return jsonify(sess.view()), 409
    if sess.status == 'loading' and not sess.ready():
        return jsonify(sess.view()), 409
    sess.run_pending()
    status = 502 if sess.status == 'error' else 200
    return jsonify(sess.view()), status


@session_bp.route('/<session_id>', methods=['DELETE'])
def end(session_id):
    if not editor_session.drop_session(session_id):
        return _not_found()
    return '', 204
