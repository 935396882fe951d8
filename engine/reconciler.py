"""Resolve instruction segments to LaTeX and merge them back in order.

One reconciliation cycle:
  1. hydrate: cache hits become Latex, misses become Placeholders
  2. convert: one batched call for every pending instruction
  3. align  : backfill short/garbled batches with the fallback converter
  4. merge  : swap placeholders for Latex, update the cache

The cache is owned by the caller (one per editing session) and only grows.
A failed batch leaves both the cache and the caller's view untouched.
"""
import logging

from engine.fallback import fallback_convert
from engine.normalizer import normalize_latex
from engine.segments import Text, Instruction, Latex, Placeholder
from services.errors import ConversionUnavailable

logger = logging.getLogger(__name__)


class ConversionCache:
    """Exact raw-instruction text -> resolved LaTeX. No eviction."""

    def __init__(self, initial=None):
        self._entries = dict(initial or {})

    def get(self, raw):
        return self._entries.get(raw)

    def update(self, pairs):
        for raw, latex in pairs:
            self._entries[raw] = latex

    def snapshot(self):
        return dict(self._entries)

    def __contains__(self, raw):
        return raw in self._entries

    def __len__(self):
        return len(self._entries)


def hydrate(segments, cache):
    """Render segments from cache.

    Returns (rendered, pending) where pending is a list of
    (position_in_rendered, Instruction) for every cache miss.
    """
    rendered = []
    pending = []
    for segment in segments:
        if isinstance(segment, Text):
            rendered.append(segment)
        elif isinstance(segment, Instruction):
            cached = cache.get(segment.raw)
            if cached is not None:
                rendered.append(Latex(cached))
            else:
                pending.append((len(rendered), segment))
                rendered.append(Placeholder(segment.raw))
        else:
            raise TypeError(f'Unexpected segment {segment!r}')
    return rendered, pending


def align_results(instructions, results):
    """Line results up with instructions.

    Missing tail positions and non-string/blank elements are resolved one
    by one with the fallback converter. Extra elements are ignored. Every
    resolved string is normalized; unresolvable positions are None.
    """
    results = list(results) if isinstance(results, (list, tuple)) else []
    if len(results) != len(instructions):
        logger.warning('Converter returned %d results for %d instructions',
                       len(results), len(instructions))

    aligned = []
    for i, instruction in enumerate(instructions):
        latex = results[i] if i < len(results) else None
        if not isinstance(latex, str) or not latex.strip():
            latex = fallback_convert(instruction)
            if latex is None:
                logger.info('Unresolvable instruction dropped: %.80s', instruction)
        aligned.append(normalize_latex(latex) or None)
    return aligned


def merge(rendered, pending, results, cache):
    """Replace pending placeholders with their results.

    Unresolved positions (None) are dropped from the output rather than
    failing the whole document. Resolved pairs go into the cache keyed by
    the exact pre-trim instruction text.
    """
    replacements = {}
    resolved = []
    for (position, instruction), latex in zip(pending, results):
        replacements[position] = latex
        if latex is not None:
            resolved.append((instruction.raw, latex))

    merged = []
    for position, segment in enumerate(rendered):
        if position not in replacements:
            merged.append(segment)
        elif replacements[position] is not None:
            merged.append(Latex(replacements[position]))
    cache.update(resolved)
    return merged


def reconcile(segments, cache, convert_batch):
    """Run a full cycle synchronously.

    convert_batch takes a list of trimmed instruction strings and returns a
    list of LaTeX strings in the same order. It is not called when every
    instruction is cached.
    """
    rendered, pending = hydrate(segments, cache)
    if not pending:
        return rendered

    batch = [instruction.content for _, instruction in pending]
    try:
        results = convert_batch(batch)
    except Exception as e:
        logger.error('Conversion batch of %d failed: %s', len(batch), e)
        raise ConversionUnavailable(str(e)) from e
    return merge(rendered, pending, align_results(batch, results), cache)
