"""Ready-made instruction text for the editor's insert panels.

Each builder returns a ``*...*`` instruction the converter turns into a
table, a multi-column layout or a placed equation.
"""
import math

EQUATION_PLACEMENTS = {
    'center': ('Render the equation in its own centered block using the equation '
               'environment so it feels like a primary element.'),
    'inline': ('Keep the equation inline with surrounding text so the baseline '
               'flows without extra vertical spacing.'),
    'left': ('Align the equation to the left using a flushleft block with a bit of '
             'gutter space on the right so text never overlaps.'),
    'right': ('Align the equation to the right using a flushright block, treating it '
              'like a margin callout that stays coherent with nearby text.'),
}


def wrap_instruction(text):
    return f'*{(text or "").strip()}*'


def clamp_value(value, lo, hi):
    """Clamp to [lo, hi]; anything non-numeric becomes lo."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return lo
    if not math.isfinite(number):
        return lo
    return int(min(hi, max(lo, number)))


def table_instruction(columns=3, rows=4, headers='', caption=''):
    columns = clamp_value(columns, 2, 6)
    rows = clamp_value(rows, 2, 12)
    header_list = ', '.join(h.strip() for h in (headers or '').split(',') if h.strip())
    header_list = header_list or 'custom headers of your choice'
    caption = (caption or '').strip() or 'Key data overview'
    return wrap_instruction(
        f'Insert a {columns}-column table with {rows} rows titled "{caption}". '
        f'Use headers {header_list} and place the caption beneath the table.'
    )


def layout_instruction(columns=2, primary='', secondary='', margin=''):
    columns = clamp_value(columns, 2, 3)
    primary = (primary or '').strip() or 'primary content'
    secondary = (secondary or '').strip() or 'supporting commentary'
    margin = (margin or '').strip() or 'notes'
    return wrap_instruction(
        f'Create a {columns}-column layout using minipage or multicolumn constructs: '
        f'column one emphasises {primary}, column two focuses on {secondary}, '
        f'and reserve a slim margin for {margin}. '
        f'Balance spacing so it feels like a polished document editor.'
    )


def equation_instruction(placement='center', label='', anchor=''):
    if placement not in EQUATION_PLACEMENTS:
        raise ValueError(f'Unknown equation placement: {placement!r}')
    anchor = (anchor or '').strip()
    if anchor:
        anchor_text = f'Anchor it {anchor} and keep nearby paragraphs clear.'
    else:
        anchor_text = ('Anchor it exactly where the reader expects it, '
                       'without overlapping adjacent content.')
    if placement == 'inline':
        numbering = 'Leave it unnumbered to avoid breaking text flow.'
    else:
        tag = (label or '').strip() or 'Eq.'
        numbering = f'Tag it as "{tag}" using \\label/\\tag so cross-references stay correct.'
    return wrap_instruction(
        f'{EQUATION_PLACEMENTS[placement]} {anchor_text} {numbering} '
        f'Ensure the LaTeX stays Overleaf-safe and add a short variable note '
        f'beneath if it aids clarity.'
    )
