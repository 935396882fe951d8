"""Tests for services/editor_session.py: debounce and stale batches."""
import threading
from unittest.mock import MagicMock

from services import editor_session
from services.editor_session import EditorSession


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def _session(mapping=None, debounce=0.35, **kwargs):
    mapping = mapping or {}
    convert = MagicMock(side_effect=lambda batch: [mapping.get(i) for i in batch])
    clock = FakeClock()
    sess = EditorSession(convert_batch=convert, debounce=debounce, clock=clock, **kwargs)
    return sess, convert, clock


def test_edit_shows_placeholders_while_loading():
    sess, _, _ = _session()
    view = sess.edit('*sqrt(2)* is irrational')
    assert view['status'] == 'loading'
    assert view['generation'] == 1
    assert view['segments'] == [
        {'type': 'placeholder', 'content': 'sqrt(2)'},
        {'type': 'text', 'content': 'is irrational'},
    ]


def test_edit_without_instructions_is_idle():
    sess, convert, _ = _session()
    view = sess.edit('just prose')
    assert view['status'] == 'idle'
    assert sess.run_pending() is False
    convert.assert_not_called()


def test_empty_edit():
    sess, _, _ = _session()
    view = sess.edit('')
    assert view['segments'] == []
    assert view['status'] == 'idle'


def test_not_ready_before_quiet_period():
    sess, convert, clock = _session({'a': 'A'})
    sess.edit('*a*')
    clock.advance(0.1)
    assert sess.ready() is False
    assert sess.run_pending() is False
    convert.assert_not_called()


def test_runs_after_quiet_period():
    sess, convert, clock = _session({'a': 'A'})
    sess.edit('*a* text')
    clock.advance(0.4)
    assert sess.run_pending() is True
    convert.assert_called_once_with(['a'])
    view = sess.view()
    assert view['status'] == 'idle'
    assert view['segments'][0] == {'type': 'latex', 'content': 'A'}


def test_keystrokes_reset_quiet_period():
    sess, convert, clock = _session({'ab': 'AB'})
    sess.edit('*a')
    clock.advance(0.2)
    sess.edit('*ab*')
    clock.advance(0.2)
    assert sess.ready() is False
    clock.advance(0.2)
    assert sess.run_pending() is True
    convert.assert_called_once_with(['ab'])


def test_one_batch_per_generation():
    sess, _, clock = _session()
    sess.edit('*a*')
    clock.advance(1)
    assert sess.begin() is not None
    assert sess.begin() is None
    assert sess.ready() is False


def test_stale_batch_discarded():
    sess, _, clock = _session()
    sess.edit('*old*')
    clock.advance(1)
    batch = sess.begin()
    sess.edit('*new*')
    assert sess.complete(batch, ['OLD']) is False
    assert 'old' not in sess.cache
    assert sess.view()['segments'] == [{'type': 'placeholder', 'content': 'new'}]
    assert sess.status == 'loading'


def test_current_batch_applied_and_cached():
    sess, _, clock = _session()
    sess.edit('*x*')
    clock.advance(1)
    batch = sess.begin()
    assert batch.instructions == ('x',)
    assert sess.complete(batch, ['X']) is True
    assert sess.cache.get('x') == 'X'


def test_cached_instruction_renders_immediately():
    sess, convert, clock = _session({'fraction(1,2)': r'\frac{1}{2}'})
    sess.edit('*fraction(1,2)* and again *fraction(1,2)*')
    clock.advance(1)
    sess.run_pending()
    convert.assert_called_once_with(['fraction(1,2)', 'fraction(1,2)'])

    view = sess.edit('*fraction(1,2)* and again *fraction(1,2)*!')
    assert view['status'] == 'idle'
    assert view['segments'][0] == {'type': 'latex', 'content': r'\frac{1}{2}'}
    clock.advance(1)
    assert sess.run_pending() is False
    assert convert.call_count == 1


def test_failed_batch_sets_error_keeps_cache():
    sess, convert, clock = _session(cache=None)
    sess.cache.update([('kept', 'K')])
    convert.side_effect = ConnectionError('offline')
    sess.edit('*kept* *new*')
    clock.advance(1)
    assert sess.run_pending() is False
    view = sess.view()
    assert view['status'] == 'error'
    assert 'offline' in view['error']
    assert sess.cache.get('kept') == 'K'
    # Nothing partially applied
    assert view['segments'][1] == {'type': 'placeholder', 'content': 'new'}


def test_stale_failure_ignored():
    sess, _, clock = _session()
    sess.edit('*a*')
    clock.advance(1)
    batch = sess.begin()
    sess.edit('*b*')
    assert sess.fail(batch, RuntimeError('late')) is False
    assert sess.status == 'loading'


def test_unresolved_results_backfilled_or_dropped():
    sess, _, clock = _session()
    sess.edit('*squareroot(2)* mid *mystery*')
    clock.advance(1)
    batch = sess.begin()
    sess.complete(batch, [])
    assert sess.view()['segments'] == [
        {'type': 'latex', 'content': r'\sqrt{2}'},
        {'type': 'text', 'content': 'mid'},
    ]


def test_default_converter_uses_fallback():
    sess = EditorSession(debounce=0)
    sess.edit('*squareroot(9)*')
    assert sess.run_pending() is True
    assert sess.view()['segments'] == [{'type': 'latex', 'content': r'\sqrt{9}'}]


def test_failed_batch_can_be_retried():
    sess, convert, clock = _session({'x': 'X'})
    convert.side_effect = [ConnectionError('offline'), ['X']]
    sess.edit('*x*')
    clock.advance(1)
    assert sess.run_pending() is False
    assert sess.ready() is True
    assert sess.run_pending() is True
    assert sess.view()['status'] == 'idle'
    assert sess.view()['segments'] == [{'type': 'latex', 'content': 'X'}]


def test_concurrent_run_pending_sends_one_batch():
    started = threading.Event()
    release = threading.Event()

    def slow_convert(batch):
        started.set()
        release.wait(5)
        return ['A']

    sess = EditorSession(convert_batch=MagicMock(side_effect=slow_convert), debounce=0)
    sess.edit('*a*')
    outcome = {}
    worker = threading.Thread(target=lambda: outcome.update(first=sess.run_pending()))
    worker.start()
    assert started.wait(5)

    # Same generation already in flight: nothing to dispatch, nothing raised
    assert sess.ready() is False
    assert sess.run_pending() is False

    release.set()
    worker.join(5)
    assert outcome['first'] is True
    assert sess.convert_batch.call_count == 1
    assert sess.view()['segments'] == [{'type': 'latex', 'content': 'A'}]


def test_edit_while_batch_in_flight_keeps_new_pending():
    started = threading.Event()
    release = threading.Event()

    def slow_convert(batch):
        started.set()
        release.wait(5)
        return ['OLD']

    sess = EditorSession(convert_batch=slow_convert, debounce=0)
    sess.edit('*old*')
    worker = threading.Thread(target=sess.run_pending)
    worker.start()
    assert started.wait(5)
    sess.edit('*new*')
    release.set()
    worker.join(5)

    assert 'old' not in sess.cache
    assert sess.view()['segments'] == [{'type': 'placeholder', 'content': 'new'}]
    assert sess.status == 'loading'
    assert sess.ready() is True


# --- registry ---

def test_registry_lifecycle():
    session_id = editor_session.create_session()
    assert isinstance(editor_session.get_session(session_id), EditorSession)
    assert editor_session.drop_session(session_id) is True
    assert editor_session.get_session(session_id) is None
    assert editor_session.drop_session(session_id) is False


def test_sessions_have_separate_caches():
    first = editor_session.get_session(editor_session.create_session())
    second = editor_session.get_session(editor_session.create_session())
    first.cache.update([('a', 'A')])
    assert 'a' not in second.cache
