"""Deterministic instruction-to-LaTeX conversion that doesn't need an LLM.

Recognizes a handful of function-call shapes (arguments may nest):

    squareroot(2x)                 -> \\sqrt{2x}
    fraction(1, 2)                 -> \\frac{1}{2}
    integral(0, pi, sin(x), dx)    -> \\int_{0}^{pi} sin(x) \\, \\mathrm{d}x
    integral(x^2, dx)              -> \\int x^2 \\, \\mathrm{d}x

Anything else is kept verbatim. An instruction with no recognized shape
does not resolve (``fallback_convert`` returns None).
"""
import re

_CALL_RE = re.compile(r'(?<![\\A-Za-z])(squareroot|sqrt|fraction|frac|integral)\s*\(',
                      re.IGNORECASE)

# name -> accepted argument counts
SHAPES = {
    'squareroot': (1,),
    'sqrt': (1,),
    'fraction': (2,),
    'frac': (2,),
    'integral': (2, 4),
}


def fallback_convert(instruction):
    """Convert one instruction, or return None when nothing matched."""
    if not instruction or not instruction.strip():
        return None
    text, matched = _convert(instruction.strip())
    if not matched:
        return None
    return text.strip()


def _convert(text):
    """Rewrite every known call in text. Returns (text, matched_any)."""
    out = []
    pos = 0
    matched = False
    while True:
        m = _CALL_RE.search(text, pos)
        if not m:
            out.append(text[pos:])
            break
        close = _find_close(text, m.end())
        if close is None:
            # Unbalanced: leave the rest untouched
            out.append(text[pos:])
            break
        out.append(text[pos:m.start()])
        name = m.group(1).lower()
        args = []
        for raw_arg in _split_args(text[m.end():close]):
            converted, inner = _convert(raw_arg.strip())
            matched = matched or inner
            args.append(converted)
        if len(args) in SHAPES[name]:
            out.append(_render(name, args))
            matched = True
        else:
            out.append(f"{m.group(1)}({', '.join(args)})")
        pos = close + 1
    return ''.join(out), matched


def _find_close(text, start):
    """Index of the ')' balancing the '(' just before start."""
    depth = 1
    for i in range(start, len(text)):
        ch = text[i]
        if ch == '(':
            depth += 1
        elif ch == ')':
            depth -= 1
            if depth == 0:
                return i
    return None


def _split_args(body):
    """Split on commas that are not nested inside () [] {}."""
    args = []
    depth = 0
    current = []
    for ch in body:
        if ch in '([{':
            depth += 1
        elif ch in ')]}':
            depth -= 1
        if ch == ',' and depth == 0:
            args.append(''.join(current))
            current = []
        else:
            current.append(ch)
    args.append(''.join(current))
    if len(args) == 1 and not args[0].strip():
        return []
    return args


def _differential(var):
    var = var.strip()
    if len(var) > 1 and var[0] == 'd':
        var = var[1:].strip()
    return var


def _render(name, args):
    if name in ('squareroot', 'sqrt'):
        return f'\\sqrt{{{args[0]}}}'
    if name in ('fraction', 'frac'):
        return f'\\frac{{{args[0]}}}{{{args[1]}}}'
    if len(args) == 4:
        lower, upper, integrand, var = args
        return (f'\\int_{{{lower}}}^{{{upper}}} {integrand} '
                f'\\, \\mathrm{{d}}{_differential(var)}')
    integrand, var = args
    return f'\\int {integrand} \\, \\mathrm{{d}}{_differential(var)}'
