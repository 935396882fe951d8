"""Tests for app.py security features: headers and error handler."""


def test_security_headers_present(client):
    """All security headers should be set on every response."""
    resp = client.get('/health')
    assert resp.headers.get('X-Content-Type-Options') == 'nosniff'
    assert resp.headers.get('X-Frame-Options') == 'SAMEORIGIN'
    assert 'Content-Security-Policy' in resp.headers


def test_csp_allows_data_images(client):
    """Preview math is served as data: URI SVGs."""
    csp = client.get('/health').headers.get('Content-Security-Policy')
    assert "img-src 'self' data:" in csp


def test_error_handler_hides_details(app):
    """Error handler should NOT leak exception details to user."""
    @app.route('/test-500')
    def crash():
        raise ValueError('secret api key is sk-xyz123')

    with app.test_client() as c:
        resp = c.get('/test-500')
        assert resp.status_code == 500
        body = resp.data.decode()
        assert 'sk-xyz123' not in body
        assert 'Internal Server Error' in body


def test_not_found_keeps_status(client):
    resp = client.get('/no-such-page')
    assert resp.status_code == 404
    assert 'error' in resp.get_json()


def test_oversized_body_rejected(app, client):
    app.config['MAX_CONTENT_LENGTH'] = 100
    resp = client.post('/convert', data='x' * 500, content_type='application/json')
    assert resp.status_code == 413
