"""Editing sessions: debounced reconciliation with stale-result discard.

Every edit bumps the session's generation. A batch remembers the generation
it was started for; when it completes after a newer edit its result is
thrown away instead of overwriting the newer view. Time comes from an
injectable clock so the quiet period can be driven by tests.
"""
import logging
import threading
import time
import uuid
from dataclasses import dataclass

from config import settings
from engine.reconciler import ConversionCache, hydrate, align_results, merge
from engine.segments import SegmentSequence
from services.conversion_service import convert_instructions, segments_to_dicts

logger = logging.getLogger(__name__)

# Live sessions, keyed by session id
_sessions = {}
_sessions_lock = threading.Lock()


@dataclass(frozen=True)
class PendingBatch:
    generation: int
    instructions: tuple
    raws: tuple


class EditorSession:
    """One editor's document, rendered view and conversion cache.

    State changes happen under the session lock. The provider call in
    run_pending runs outside it.
    """

    def __init__(self, convert_batch=None, cache=None,
                 debounce=None, clock=time.monotonic):
        self.convert_batch = convert_batch or convert_instructions
        self.cache = cache if cache is not None else ConversionCache()
        self.debounce = settings.DEBOUNCE_SECONDS if debounce is None else debounce
        self.clock = clock
        self.generation = 0
        self.document = ''
        self.rendered = []
        self.status = 'idle'
        self.error = None
        self._pending = []
        self._edited_at = None
        self._dispatched = None
        self._lock = threading.Lock()

    def edit(self, document):
        """Record a new document version and show whatever the cache knows."""
        segments = SegmentSequence(document or '', settings.CONVERSION_DEFAULTS['delimiter'])
        with self._lock:
            self.generation += 1
            self.document = segments.document
            self.rendered, self._pending = hydrate(segments, self.cache)
            self._edited_at = self.clock()
            self._dispatched = None
            self.error = None
            self.status = 'loading' if self._pending else 'idle'
        return self.view()

    def _due(self, now):
        if not self._pending or self._dispatched == self.generation:
            return False
        now = self.clock() if now is None else now
        return now - self._edited_at >= self.debounce

    def ready(self, now=None):
        """A batch is waiting and the quiet period has passed."""
        with self._lock:
            return self._due(now)

    def begin(self, now=None):
        """Snapshot the pending instructions for the current generation.

        Returns None when there is nothing to send, the batch for this
        generation is already in flight, or (when now is given) the quiet
        period has not passed yet.
        """
        with self._lock:
            if not self._pending or self._dispatched == self.generation:
                return None
            if now is not None and not self._due(now):
                return None
            self._dispatched = self.generation
            return PendingBatch(
                generation=self.generation,
                instructions=tuple(i.content for _, i in self._pending),
                raws=tuple(i.raw for _, i in self._pending),
            )

    def is_current(self, batch):
        return batch.generation == self.generation

    def complete(self, batch, results):
        """Apply a finished batch. Returns False if it was superseded."""
        aligned = align_results(list(batch.instructions), results)
        with self._lock:
            if not self.is_current(batch):
                logger.info('Discarding stale batch (generation %d, now %d)',
                            batch.generation, self.generation)
                return False
            self.rendered = merge(self.rendered, self._pending, aligned, self.cache)
            self._pending = []
            self.status = 'idle'
            self.error = None
            return True

    def fail(self, batch, error):
        """Record a failed batch. Cached resolutions stay valid.

        The generation becomes dispatchable again so the client can retry
        without editing.
        """
        with self._lock:
            if not self.is_current(batch):
                return False
            self.status = 'error'
            self.error = str(error) or 'Unable to convert input.'
            self._dispatched = None
            return True

    def run_pending(self, now=None):
        """Dispatch the pending batch if due. Returns True when applied."""
        batch = self.begin(self.clock() if now is None else now)
        if batch is None:
            return False
        try:
            results = self.convert_batch(list(batch.instructions))
        except Exception as e:
            logger.error('Session batch failed: %s', e)
            self.fail(batch, e)
            return False
        return self.complete(batch, results)

    def view(self):
        with self._lock:
            return {
                'generation': self.generation,
                'status': self.status,
                'error': self.error,
                'segments': segments_to_dicts(self.rendered),
            }


def create_session(**kwargs):
    session_id = uuid.uuid4().hex
    with _sessions_lock:
        _sessions[session_id] = EditorSession(**kwargs)
    logger.info('Editor session %s started', session_id)
    return session_id


def get_session(session_id):
    with _sessions_lock:
        return _sessions.get(session_id)


def drop_session(session_id):
    with _sessions_lock:
        return _sessions.pop(session_id, None) is not None


def clear_sessions():
    with _sessions_lock:
        _sessions.clear()
