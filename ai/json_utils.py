"""Parse JSON from AI responses, handling markdown code blocks."""
import json
import re


def _fix_latex_escapes(text):
    r"""Fix invalid JSON escape sequences from LLM output.

    Only called after json.loads() has already failed. Models asked for
    LaTeX strings often write ["\sqrt{2x}"] with single backslashes, which
    is invalid JSON (\s) or silently wrong (\f, \t, \b become control chars).

    Every \X other than \" and \\ is doubled so it survives as a literal
    backslash.
    """
    result = []
    i = 0
    n = len(text)
    while i < n:
        if text[i] == '\\' and i + 1 < n:
            next_char = text[i + 1]
            if next_char in '"\\':
                result.append('\\' + next_char)
            else:
                result.append('\\\\' + next_char)
            i += 2
        else:
            result.append(text[i])
            i += 1
    return ''.join(result)


def _strip_code_fences(text):
    text = re.sub(r'^```(?:json)?\s*', '', text.strip(), flags=re.IGNORECASE)
    return re.sub(r'\s*```$', '', text).strip()


def _loads_with_repair(text):
    """json.loads, retrying once with LaTeX escapes repaired.

    A raw parse that "succeeds" but yields control characters (\f from
    \frac, \t from \times) is treated as a failed parse.
    """
    try:
        result = json.loads(text)
        if not _has_control_chars(result):
            return result
    except json.JSONDecodeError:
        pass
    return json.loads(_fix_latex_escapes(text))


def _has_control_chars(value):
    if isinstance(value, str):
        return any(ch in value for ch in '\f\t\b\r\x0b')
    if isinstance(value, list):
        return any(_has_control_chars(v) for v in value)
    if isinstance(value, dict):
        return any(_has_control_chars(v) for v in value.values())
    return False


def parse_ai_json(text):
    """Extract and parse JSON from LLM response text.

    Handles:
    - Raw JSON
    - JSON wrapped in ```json ... ``` or ``` ... ``` blocks
    - Unescaped LaTeX backslashes (e.g. \\sqrt \\frac \\times)
    - JSON embedded in surrounding prose
    """
    cleaned = _strip_code_fences(text)

    try:
        return _loads_with_repair(cleaned)
    except json.JSONDecodeError:
        pass

    # Extract from markdown code block in the middle of prose
    match = re.search(r'```(?:json)?\s*\n(.*?)\n```', cleaned, re.DOTALL)
    if match:
        try:
            return _loads_with_repair(match.group(1).strip())
        except json.JSONDecodeError:
            pass

    # Try to find a JSON array or object in the text
    for pattern in [r'\[.*\]', r'\{[^{}]*(?:\{[^{}]*\}[^{}]*)*\}']:
        match = re.search(pattern, cleaned, re.DOTALL)
        if match:
            try:
                return _loads_with_repair(match.group(0))
            except json.JSONDecodeError:
                continue

    raise json.JSONDecodeError("No valid JSON found in response", cleaned, 0)


def parse_ai_json_list(text):
    """Parse a JSON array from LLM response, guaranteeing a list return.

    A dict wrapping a single list value ({"latex": [...]}) is unwrapped.
    As a last resort a bracketed run of quoted strings is split by hand.
    Raises ValueError if no list can be recovered.
    """
    try:
        result = parse_ai_json(text)
    except json.JSONDecodeError:
        result = None

    if isinstance(result, list):
        return result
    if isinstance(result, dict):
        lists = [v for v in result.values() if isinstance(v, list)]
        if len(lists) == 1:
            return lists[0]

    match = re.search(r'\[(.*)\]', text or '', re.DOTALL)
    if match and match.group(1).strip():
        parts = re.split(r'"\s*,\s*"', match.group(1).strip())
        return [part.strip().strip('"').strip() for part in parts]

    raise ValueError(f"LLM response contains no JSON array: {(text or '')[:300]}")
