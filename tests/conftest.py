"""Shared test fixtures: no API key, no debounce, fresh session registry."""
import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


@pytest.fixture(autouse=True)
def offline_settings(monkeypatch, tmp_path):
    """Force the fallback provider and an immediate quiet period."""
    monkeypatch.setattr('config.settings.OPENAI_API_KEY', '')
    monkeypatch.setattr('config.settings.DEBOUNCE_SECONDS', 0.0)
    monkeypatch.setattr('config.settings.DEGRADE_TO_FALLBACK', True)
    monkeypatch.setattr('config.settings.LOG_FILE', str(tmp_path / 'test.log'))

    from services import editor_session
    editor_session.clear_sessions()
    yield
    editor_session.clear_sessions()


@pytest.fixture
def with_api_key(monkeypatch):
    monkeypatch.setattr('config.settings.OPENAI_API_KEY', 'sk-test')


@pytest.fixture
def app():
    """Flask test app."""
    from app import create_app
    application = create_app()
    application.config['TESTING'] = True
    return application


@pytest.fixture
def client(app):
    """Flask test client."""
    return app.test_client()
