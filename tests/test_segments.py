"""Tests for engine/segments.py."""
from engine.segments import (
    Text, Instruction, SegmentSequence, extract_segments, iter_segments,
    instructions,
)


def _kinds(segments):
    return [(type(s).__name__, s.content) for s in segments]


def test_empty_document():
    assert extract_segments('') == []


def test_blank_document():
    assert extract_segments('   \n\t ') == []


def test_no_delimiters_single_trimmed_text():
    segments = extract_segments('  just some prose \n')
    assert _kinds(segments) == [('Text', 'just some prose')]


def test_instruction_then_text():
    segments = extract_segments('*squareroot(2x)* is steep')
    assert _kinds(segments) == [
        ('Instruction', 'squareroot(2x)'),
        ('Text', 'is steep'),
    ]


def test_text_between_instructions():
    doc = 'A *fraction(1,2)* and B *sqrt(3)* end'
    assert _kinds(extract_segments(doc)) == [
        ('Text', 'A'),
        ('Instruction', 'fraction(1,2)'),
        ('Text', 'and B'),
        ('Instruction', 'sqrt(3)'),
        ('Text', 'end'),
    ]


def test_instruction_spans_lines():
    segments = extract_segments('before *integral(0,\n1, x, dx)* after')
    assert isinstance(segments[1], Instruction)
    assert segments[1].content == 'integral(0,\n1, x, dx)'


def test_dangling_delimiter_is_literal():
    segments = extract_segments('*sqrt(2)* costs 5 * 3')
    assert _kinds(segments) == [
        ('Instruction', 'sqrt(2)'),
        ('Text', 'costs 5 * 3'),
    ]


def test_single_delimiter_only():
    assert _kinds(extract_segments('a * b')) == [('Text', 'a * b')]


def test_blank_pair_dropped():
    assert _kinds(extract_segments('left *  * right')) == [
        ('Text', 'left'), ('Text', 'right'),
    ]


def test_raw_keeps_whitespace():
    segment = extract_segments('*  sqrt(2)  *')[0]
    assert segment.content == 'sqrt(2)'
    assert segment.raw == '  sqrt(2)  '


def test_spans_reconstruct_document():
    doc = 'Intro *fraction(1,2)* middle *sqrt(x)*tail'
    segments = extract_segments(doc)
    rebuilt = ''.join(doc[s.start:s.end] for s in segments)
    assert rebuilt == doc


def test_spans_reconstruct_ignoring_blank_gaps():
    doc = '*sqrt(2)*   *sqrt(3)*'
    segments = extract_segments(doc)
    rebuilt = ''.join(doc[s.start:s.end] for s in segments)
    assert rebuilt == '*sqrt(2)**sqrt(3)*'


def test_iter_is_lazy():
    gen = iter_segments('*a* b *c*')
    assert next(gen) == Instruction('a', 'a', 0, 3)


def test_sequence_is_restartable():
    seq = SegmentSequence('x *y* z')
    first = list(seq)
    second = list(seq)
    assert first == second
    assert len(first) == 3


def test_custom_delimiter():
    segments = extract_segments('x $sqrt(2)$ y', delimiter='$')
    assert _kinds(segments) == [
        ('Text', 'x'), ('Instruction', 'sqrt(2)'), ('Text', 'y'),
    ]


def test_instructions_filter():
    segments = extract_segments('a *b* c *d*')
    assert [s.content for s in instructions(segments)] == ['b', 'd']
    assert all(isinstance(s, Instruction) for s in instructions(segments))
    assert not any(isinstance(s, Text) for s in instructions(segments))
