"""Restore missing backslashes on well-known LaTeX command names.

Converters (LLMs especially) sometimes return ``sqrt{2x}`` or ``int_0^1``.
Bare command names are prefixed with ``\\``; names already escaped, or
embedded in a longer word (``print``, ``\\arccos``), are left alone.
"""
import re

KNOWN_COMMANDS = (
    'int', 'sum', 'prod', 'sqrt', 'frac',
    'sin', 'cos', 'tan', 'log', 'ln', 'exp', 'lim',
    'nabla', 'vec', 'cdot', 'times', 'boxed', 'infty',
)

_BARE_COMMAND_RE = re.compile(
    r'(?<![\\A-Za-z])(' + '|'.join(KNOWN_COMMANDS) + r')(?![A-Za-z])'
)


def normalize_latex(latex):
    """Escape bare known commands. Returns '' for empty input."""
    if not latex:
        return ''
    return _BARE_COMMAND_RE.sub(r'\\\1', latex).strip()
