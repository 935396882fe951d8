"""PDF export: local TeX engine first, remote compile API second."""
import logging
import os
import re
import shutil
import subprocess
import tempfile

import requests

from config import settings
from services.errors import CompilationFailed

logger = logging.getLogger(__name__)

LOCAL_ENGINES = ('latexmk', 'pdflatex', 'tectonic')


def log_tail(text, lines=None):
    """Last N lines of a compiler log."""
    lines = lines or settings.LOG_TAIL_LINES
    return '\n'.join((text or '').rstrip().splitlines()[-lines:])


def detect_engine():
    """Path of the first TeX engine found, or None."""
    if settings.TEX_COMPILER:
        return shutil.which(settings.TEX_COMPILER)
    for name in LOCAL_ENGINES:
        path = shutil.which(name)
        if path:
            return path
    return None


def _engine_command(engine, tex_name):
    name = os.path.basename(engine).lower()
    if 'latexmk' in name:
        return [engine, '-pdf', '-interaction=nonstopmode', '-halt-on-error', tex_name]
    if 'tectonic' in name:
        return [engine, '--keep-logs', tex_name]
    return [engine, '-interaction=nonstopmode', '-halt-on-error', tex_name]


def safe_stem(output_name):
    stem = re.sub(r'\.(pdf|tex)$', '', (output_name or '').strip(), flags=re.IGNORECASE)
    return re.sub(r'[^A-Za-z0-9_.-]+', '_', stem).strip('._') or 'document'


def compile_local(markup, output_name):
    """Compile with a local engine. Returns PDF bytes.

    Raises FileNotFoundError when no engine is installed and
    CompilationFailed when the engine runs but produces no PDF.
    """
    engine = detect_engine()
    if not engine:
        raise FileNotFoundError('No local TeX engine found')

    stem = safe_stem(output_name)
    with tempfile.TemporaryDirectory(prefix='mathscribe-') as workdir:
        tex_path = os.path.join(workdir, f'{stem}.tex')
        pdf_path = os.path.join(workdir, f'{stem}.pdf')
        with open(tex_path, 'w', encoding='utf-8') as f:
            f.write(markup)

        try:
            result = subprocess.run(
                _engine_command(engine, f'{stem}.tex'),
                cwd=workdir,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=settings.COMPILE_TIMEOUT,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            raise CompilationFailed('Local compilation timed out',
                                    log_tail(e.output if isinstance(e.output, str) else '')) from e

        if result.returncode == 0 and os.path.exists(pdf_path):
            with open(pdf_path, 'rb') as f:
                pdf = f.read()
            logger.info('Compiled %s.pdf locally with %s (%d bytes)',
                        stem, os.path.basename(engine), len(pdf))
            return pdf

        log = result.stdout or ''
        log_path = os.path.join(workdir, f'{stem}.log')
        if os.path.exists(log_path):
            with open(log_path, encoding='utf-8', errors='replace') as f:
                log = f.read()
        raise CompilationFailed(
            f'{os.path.basename(engine)} exited with {result.returncode}',
            log_tail(log or 'Compilation failed without output'),
        )


def compile_remote(markup, output_name):
    """Compile through the remote latexcgi endpoint. Returns PDF bytes."""
    if not settings.REMOTE_TEX_URL:
        raise CompilationFailed('No remote compiler configured')
    stem = safe_stem(output_name)
    try:
        resp = requests.post(
            settings.REMOTE_TEX_URL,
            files={
                'filecontents[]': (None, markup),
                'filename[]': (None, 'document.tex'),
                'engine': (None, 'pdflatex'),
                'return': (None, 'pdf'),
            },
            timeout=settings.COMPILE_TIMEOUT,
        )
    except requests.RequestException as e:
        logger.error('Remote compiler unreachable: %s', e)
        raise CompilationFailed(f'Remote compiler unreachable: {e}') from e

    content_type = resp.headers.get('Content-Type', '')
    if resp.ok and (content_type.startswith('application/pdf')
                    or resp.content[:5] == b'%PDF-'):
        logger.info('Compiled %s.pdf remotely (%d bytes)', stem, len(resp.content))
        return resp.content
    raise CompilationFailed(
        f'Remote compiler returned HTTP {resp.status_code}',
        log_tail(resp.text),
    )


def compile_document(markup, output_name='document'):
    """Produce PDF bytes for a complete LaTeX document.

    Falls back from the local engine to the remote API. When both fail the
    CompilationFailed carries whichever diagnostic log is available.
    """
    local_error = None
    try:
        return compile_local(markup, output_name)
    except FileNotFoundError:
        logger.info('No local TeX engine; trying remote compiler')
    except CompilationFailed as e:
        logger.warning('Local compilation failed: %s', e)
        local_error = e

    try:
        return compile_remote(markup, output_name)
    except CompilationFailed as e:
        if local_error is not None and local_error.log_tail and not e.log_tail:
            raise local_error from e
        raise
