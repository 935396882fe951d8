"""Mathscribe: centralized configuration."""
import os
from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
LOG_FILE = os.path.join(BASE_DIR, 'mathscribe.log')

PORT = int(os.environ.get('PORT', '4000'))
SECRET_KEY = os.environ.get('SECRET_KEY', 'mathscribe-dev-key')

# OpenAI-compatible chat completions
OPENAI_API_KEY = os.environ.get('OPENAI_API_KEY', '')
OPENAI_MODEL = os.environ.get('OPENAI_MODEL', 'gpt-4o-mini')
OPENAI_BASE_URL = os.environ.get('OPENAI_BASE_URL', 'https://api.openai.com/v1')
OPENAI_TIMEOUT = float(os.environ.get('OPENAI_TIMEOUT', '60'))

# Conversion
CONVERSION_DEFAULTS = {
    'delimiter': '*',
    'temperature': 0.2,
    'max_tokens': 2048,
}
DEBOUNCE_SECONDS = float(os.environ.get('DEBOUNCE_SECONDS', '0.35'))
DEGRADE_TO_FALLBACK = os.environ.get('DEGRADE_TO_FALLBACK', '1') not in ('0', 'false', 'no')
MAX_INPUT_CHARS = 1024 * 1024

# PDF export
TEX_COMPILER = os.environ.get('TEX_COMPILER', '')
REMOTE_TEX_URL = os.environ.get('REMOTE_TEX_URL', 'https://texlive.net/cgi-bin/latexcgi')
COMPILE_TIMEOUT = float(os.environ.get('COMPILE_TIMEOUT', '60'))
LOG_TAIL_LINES = 40
