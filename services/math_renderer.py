"""Server-side preview rendering using matplotlib's mathtext.

Latex segments become inline SVG images; prose is HTML-escaped.
Uses Figure() directly (not pyplot) for thread safety in Flask threaded mode.
No TeX installation required. Layout LaTeX (tables, environments) that
mathtext can't draw falls back to a <code> block.
"""
import base64
import html
import io
import logging
from functools import lru_cache

from matplotlib.figure import Figure
from matplotlib.backends.backend_svg import FigureCanvasSVG

from engine.segments import Text, Latex, Placeholder
from services.document_builder import should_display_math

logger = logging.getLogger(__name__)


@lru_cache(maxsize=512)
def latex_to_svg(latex_expr, fontsize=16, display=False):
    """Render a LaTeX expression to an inline <img> tag with base64 SVG.

    Returns HTML string. On failure, returns a <code> fallback.
    """
    alt = html.escape(latex_expr, quote=True)
    try:
        fig = Figure(figsize=(0.01, 0.01))
        fig.patch.set_alpha(0)
        FigureCanvasSVG(fig)
        fig.text(0, 0, f'${latex_expr}$', fontsize=fontsize,
                 math_fontfamily='cm')
        buf = io.BytesIO()
        fig.savefig(buf, format='svg', bbox_inches='tight',
                    pad_inches=0.02, transparent=True)
        b64 = base64.b64encode(buf.getvalue()).decode('ascii')
        css_class = 'math-display' if display else 'math-inline'
        return (f'<img class="{css_class}" '
                f'src="data:image/svg+xml;base64,{b64}" '
                f'alt="{alt}">')
    except Exception as exc:
        logger.warning('Failed to render LaTeX: %s, expr: %s', exc, latex_expr)
        return f'<code class="math-fallback">{alt}</code>'


def render_segment_html(segment):
    if isinstance(segment, Text):
        return f'<p class="segment-block text">{html.escape(segment.content)}</p>'
    if isinstance(segment, Latex):
        display = should_display_math(segment.content)
        img = latex_to_svg(segment.content.strip(), fontsize=18 if display else 16,
                           display=display)
        tag = 'div' if display else 'span'
        return f'<{tag} class="segment-block latex">{img}</{tag}>'
    if isinstance(segment, Placeholder):
        return ('<p class="segment-block placeholder">Converting&nbsp;'
                f'<code>{html.escape(segment.content)}</code></p>')
    raise TypeError(f'Unexpected segment {segment!r}')


def render_segments_html(segments):
    """HTML fragment for the preview pane."""
    return '\n'.join(render_segment_html(s) for s in segments)
