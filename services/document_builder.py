"""Assemble rendered segments into a standalone LaTeX document."""
import re

from engine.segments import Text, Instruction, Latex, Placeholder

PREAMBLE_PACKAGES = ('amsmath', 'amssymb', 'graphicx', 'array', 'enumitem', 'tikz')

_DISPLAY_HINT_RE = re.compile(
    r'\\begin|\\int|\\sum|\\lim|\\boxed|\\frac|=|\\aligned|\\cases|\\displaystyle'
)
_STRUCTURAL_ENVS = ('itemize', 'enumerate', 'center', 'flushleft', 'flushright',
                    'minipage', 'multicols', 'tabular', 'table', 'figure')


def escape_latex_text(text):
    """Escape prose so it typesets literally."""
    out = []
    for ch in text or '':
        if ch == '\\':
            out.append('\\textbackslash{}')
        elif ch in '{}_%&#':
            out.append('\\' + ch)
        elif ch == '^':
            out.append('\\^{}')
        elif ch == '~':
            out.append('\\textasciitilde{}')
        else:
            out.append(ch)
    return ''.join(out)


def should_display_math(latex):
    """Display (block) math for multi-line, long or operator-heavy LaTeX."""
    trimmed = (latex or '').strip()
    if '\n' in trimmed or len(trimmed) > 120:
        return True
    return bool(_DISPLAY_HINT_RE.search(trimmed))


def _body_block(segment):
    if isinstance(segment, Latex):
        return segment.content
    if isinstance(segment, Text):
        escaped = escape_latex_text(segment.content)
        return f'{escaped}\n' if escaped else ''
    if isinstance(segment, Placeholder):
        return f'% pending conversion for: {segment.content}'
    raise TypeError(f'Unexpected segment {segment!r}')


def build_latex_document(title, segments):
    escaped_title = escape_latex_text(title or 'Untitled document')
    if segments:
        body = '\n\n'.join(_body_block(s) for s in segments)
    else:
        body = '% Start writing to generate content.'
    lines = ['\\documentclass{article}']
    lines += [f'\\usepackage{{{pkg}}}' for pkg in PREAMBLE_PACKAGES]
    lines += [
        '',
        f'\\title{{{escaped_title}}}',
        '\\date{}',
        '',
        '\\begin{document}',
        '\\maketitle',
        '',
        body,
        '',
        '\\end{document}',
    ]
    return '\n'.join(lines)


def tex_filename(title):
    base = re.sub(r'\s+', '_', (title or '').strip()) or 'document'
    return f'{base}.tex'


def _plain_text(latex):
    """Crude LaTeX -> text for outline labels."""
    out = re.sub(r'\\(?:begin|end)\{.*?\}\s*', '', latex)
    out = re.sub(r'\\(?:textbf|textit|underline|text|(?:sub)*section\*?)\{([^}]*)\}', r'\1', out)
    out = re.sub(r'\\\[|\\\]|\$|\{|\}', ' ', out)
    out = re.sub(r'\\[a-zA-Z]+', '', out)
    return re.sub(r'\s+', ' ', out).strip()


def _shorten(text, limit=60):
    return text if len(text) <= limit else text[:limit - 3].rstrip() + '...'


def outline_entry(segment):
    """Summarize one segment for the document outline."""
    if isinstance(segment, Text):
        content = segment.content.strip()
        if content.startswith('#'):
            return {'kind': 'heading', 'label': _shorten(content.lstrip('#').strip())}
        if re.match(r'^([-*\u2022]|\d+[.)])\s', content):
            return {'kind': 'list', 'label': _shorten(content)}
        return {'kind': 'text', 'label': _shorten(content)}
    if isinstance(segment, Latex):
        content = segment.content.strip()
        if re.search(r'\\(sub)*section\*?\{', content):
            return {'kind': 'heading', 'label': _shorten(_plain_text(content))}
        if re.search(r'\\begin\{(itemize|enumerate)\}|\\item\s', content):
            return {'kind': 'list', 'label': _shorten(_plain_text(content) or 'List')}
        if any(f'\\begin{{{env}}}' in content for env in _STRUCTURAL_ENVS):
            return {'kind': 'text', 'label': _shorten(_plain_text(content) or 'Layout')}
        return {'kind': 'math', 'label': _shorten(content)}
    if isinstance(segment, (Instruction, Placeholder)):
        return {'kind': 'math', 'label': _shorten(segment.content.strip())}
    raise TypeError(f'Unexpected segment {segment!r}')


def outline(segments):
    return [outline_entry(s) for s in segments]
