"""Cancellable stream of recognition events for one assessment.

The recognizer reports partial transcripts while speech is being
recognized and one assessment per recognized segment. Producers push into
an ``AssessmentStream`` from their callback threads; consumers either
iterate it for live updates or block on :meth:`AssessmentStream.result`
for the merged final assessment.
"""

from __future__ import annotations

import queue
import threading
from typing import Callable, Iterator, List, Optional, Union

from contracts import AssessmentResult, RecognitionUpdate
from exceptions import AssessmentTimeoutError
from integrations.assessment_parsing import merge_results
from log_config.logger import get_logger

logger = get_logger(__name__)

StreamEvent = Union[RecognitionUpdate, AssessmentResult]

_END = object()


class AssessmentStream:
    """Thread-safe event stream for one reference text.

    Lifecycle: open -> finished (normally, with an error, or cancelled).
    Events pushed after the stream has finished are dropped.
    """

    def __init__(self, reference_text: str, on_stop: Optional[Callable[[], None]] = None) -> None:
        self.reference_text = reference_text
        self._on_stop = on_stop
        self._events: "queue.Queue[object]" = queue.Queue()
        self._segments: List[AssessmentResult] = []
        self._lock = threading.Lock()
        self._finished = threading.Event()
        self._stop_requested = False
        self._cancelled = False
        self._error: Optional[BaseException] = None
        self.last_partial: Optional[str] = None

    @property
    def done(self) -> bool:
        return self._finished.is_set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def segment_count(self) -> int:
        with self._lock:
            return len(self._segments)

    def push_partial(self, text: str, offset_ms: Optional[float] = None) -> None:
        if self.done:
            return
        self.last_partial = text
        self._events.put(RecognitionUpdate(text=text, offset_ms=offset_ms))

    def push_result(self, result: AssessmentResult) -> None:
        with self._lock:
            if self._finished.is_set():
                logger.debug("Dropping assessment segment received after stream finished")
                return
            self._segments.append(result)
        self._events.put(result)

    def finish(self, error: Optional[BaseException] = None) -> None:
        """Mark the stream complete. Only the first call has an effect."""
        with self._lock:
            if self._finished.is_set():
                return
            self._error = error
            self._finished.set()
        self._events.put(_END)
        if error is not None:
            logger.warning(f"Assessment stream finished with error: {error}")
        else:
            logger.debug(f"Assessment stream finished with {len(self._segments)} segment(s)")

    def stop(self) -> None:
        """End audio input and keep the segments recognized so far."""
        with self._lock:
            if self._stop_requested or self._finished.is_set():
                callback = None
            else:
                self._stop_requested = True
                callback = self._on_stop
        if callback is not None:
            callback()
        self.finish()

    def cancel(self) -> None:
        """Stop recognition and discard any result."""
        self._cancelled = True
        self.stop()

    def wait(self, timeout: Optional[float] = None) -> bool:
        return self._finished.wait(timeout)

    def __iter__(self) -> Iterator[StreamEvent]:
        while True:
            item = self._events.get()
            if item is _END:
                return
            yield item

    def result(self, timeout: Optional[float] = None) -> Optional[AssessmentResult]:
        """Merged assessment over all recognized segments.

        Returns:
            The merged result, or None if cancelled or nothing was recognized

        Raises:
            AssessmentTimeoutError: If the stream does not finish in time
            AssessmentError: If the recognizer failed before any segment
        """
        if not self._finished.wait(timeout):
            raise AssessmentTimeoutError(f"No final assessment within {timeout}s")
        if self._cancelled:
            return None
        with self._lock:
            segments = list(self._segments)
            error = self._error
        if error is not None and not segments:
            raise error
        return merge_results(segments)
