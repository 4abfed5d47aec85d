from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, Mapping, Optional

from maturagrader.core.exceptions import (
    AlreadyGradingError,
    EmptyDocumentError,
    RubricValidationError,
    ScoringServiceError,
)
from maturagrader.models.rubric import RubricResult, validate
from maturagrader.services.collaborators import LoggingNotifier, NotificationKind, Notifier, ScoringService
from maturagrader.services.document import Document
from maturagrader.services.intake import FileIntake
from maturagrader.services.mode_controller import ModeController

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    EDITING = "editing"
    SUBMITTING = "submitting"
    RESULT = "result"
    FAILED = "failed"


@dataclass(frozen=True)
class SessionTransition:
    previous: SessionState
    current: SessionState
    request_id: int


Observer = Callable[[SessionTransition], None]


class GradingSession:
    """Lifecycle of one essay: intake → submit → pending → result/error.

    Flow:
      idle → (text) editing → (submit) submitting → result | failed

    At most one grading request is outstanding at a time. Every request gets
    a fresh id, and a scorer response is applied only while its id is the
    outstanding one, so responses that arrive after a reset are dropped.
    """

    def __init__(
        self,
        scorer: ScoringService,
        notifier: Optional[Notifier] = None,
        intake: Optional[FileIntake] = None,
    ) -> None:
        self._scorer = scorer
        self._notifier = notifier or LoggingNotifier()
        self._intake = intake or FileIntake()
        self._document = Document()
        self._mode = ModeController(self._document)
        self._state = SessionState.IDLE
        self._result: Optional[RubricResult] = None
        self._error: Optional[ScoringServiceError] = None
        self._request_id = 0
        self._outstanding_id: Optional[int] = None
        self._task: Optional[asyncio.Task] = None
        self._observers: List[Observer] = []

    # ------------------------------------------------------------------ views
    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def document(self) -> Document:
        return self._document

    @property
    def result(self) -> Optional[RubricResult]:
        return self._result

    @property
    def error(self) -> Optional[ScoringServiceError]:
        return self._error

    @property
    def writing_mode(self) -> bool:
        return self._mode.active

    @property
    def request_id(self) -> int:
        """Id of the most recently dispatched request (0 before the first)."""
        return self._request_id

    @property
    def outstanding_request_id(self) -> Optional[int]:
        return self._outstanding_id

    # -------------------------------------------------------------- observers
    def subscribe(self, observer: Observer) -> Callable[[], None]:
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def _transition(self, new_state: SessionState) -> None:
        previous = self._state
        self._state = new_state
        if previous is not new_state:
            logger.info(f"Session {previous.value} → {new_state.value} (request {self._request_id})")

        record = SessionTransition(previous=previous, current=new_state, request_id=self._request_id)
        for observer in list(self._observers):
            try:
                observer(record)
            except Exception:  # noqa: BLE001
                logger.exception("Session observer failed")

    # --------------------------------------------------------------- document
    def set_text(self, text: str) -> None:
        """Replace the essay text; a changed document invalidates any prior grade."""
        self._document.set_text(text)
        self._result = None
        self._error = None
        self._transition(SessionState.IDLE if self._document.is_blank else SessionState.EDITING)

    def load_file(self, data: bytes, filename: Optional[str] = None, content_type: Optional[str] = None) -> None:
        text = self._intake.decode(data, filename=filename, content_type=content_type)
        self.set_text(text)
        self._notifier.notify(NotificationKind.DOCUMENT_LOADED, f"Loaded {filename or 'document'}")

    # ----------------------------------------------------------- writing mode
    def enter_writing_mode(self) -> None:
        self._mode.enter()
        self._transition(self._state)

    def exit_writing_mode(self) -> None:
        self._mode.exit()
        self._transition(self._state)

    # ---------------------------------------------------------------- grading
    def submit(self) -> "asyncio.Task[None]":
        """Start grading the current text and return the in-flight task.

        Must be called from a running event loop.
        """
        if self._state is SessionState.SUBMITTING:
            raise AlreadyGradingError(
                "Grading is already in progress",
                {"request_id": self._outstanding_id},
            )
        if self._document.is_blank:
            self._notifier.notify(
                NotificationKind.EMPTY_SUBMISSION_REJECTED,
                "Type some text or upload a file before grading.",
            )
            raise EmptyDocumentError("Document is empty", {"state": self._state.value})

        loop = asyncio.get_running_loop()

        self._mode.force_exit()
        self._result = None
        self._error = None
        self._request_id += 1
        request_id = self._request_id
        self._outstanding_id = request_id
        snapshot = self._document.snapshot()
        self._document.freeze()
        self._transition(SessionState.SUBMITTING)

        logger.info(f"Dispatching grading request {request_id} ({self._document.word_count} words)")
        self._task = loop.create_task(self._run_grading(request_id, snapshot), name=f"grading-{request_id}")
        return self._task

    async def grade(self) -> Optional[RubricResult]:
        """Submit and wait; returns the result, or None if grading failed or was discarded."""
        task = self.submit()
        await asyncio.wait({task})
        return self._result if self._state is SessionState.RESULT else None

    async def _run_grading(self, request_id: int, snapshot: str) -> None:
        try:
            candidate = await self._scorer.grade(snapshot)
        except asyncio.CancelledError:
            task = asyncio.current_task()
            if request_id != self._outstanding_id or (task is not None and task.cancelling()):
                logger.info(f"Grading request {request_id} cancelled")
                raise
            # raised inside the scorer, not a cancellation of this request
            self.deliver_failure(
                request_id,
                ScoringServiceError("Scoring service call was cancelled", {"type": "CancelledError"}),
            )
        except Exception as exc:  # noqa: BLE001
            self.deliver_failure(request_id, exc)
        else:
            self.deliver(request_id, candidate)

    def _is_outstanding(self, request_id: int) -> bool:
        if self._state is not SessionState.SUBMITTING or request_id != self._outstanding_id:
            logger.debug(
                f"Dropping stale response for request {request_id} (outstanding: {self._outstanding_id})"
            )
            return False
        return True

    def _settle(self) -> None:
        self._outstanding_id = None
        self._task = None
        self._document.unfreeze()

    def deliver(self, request_id: int, candidate: Any) -> bool:
        """Apply a scorer response. Returns False if the response was stale."""
        if not self._is_outstanding(request_id):
            return False
        try:
            result = validate(candidate)
        except RubricValidationError as exc:
            return self.deliver_failure(request_id, exc)

        self._settle()
        self._result = result
        self._transition(SessionState.RESULT)
        logger.info(f"Request {request_id} graded: {result.total_score}/{result.max_total_score}")
        return True

    def deliver_failure(self, request_id: int, exc: BaseException) -> bool:
        """Record a scorer failure. Returns False if the failure was stale."""
        if not self._is_outstanding(request_id):
            return False

        if isinstance(exc, ScoringServiceError):
            error = exc
        else:
            error = ScoringServiceError(f"Scoring service failed: {exc}", {"type": type(exc).__name__})

        if isinstance(error, RubricValidationError):
            logger.error(
                f"Request {request_id}: scorer returned an inconsistent rubric result: {error.message}",
                extra={"details": error.details},
            )
        else:
            logger.warning(f"Request {request_id} failed: {error.message}")

        self._settle()
        self._error = error
        self._transition(SessionState.FAILED)
        return True

    # -------------------------------------------------------------- lifecycle
    def _discard_outstanding(self) -> None:
        if self._outstanding_id is not None:
            logger.info(f"Discarding outstanding grading request {self._outstanding_id}")
        task = self._task
        self._settle()
        if task is not None and not task.done():
            task.cancel()

    def reset(self) -> None:
        """Clear document and result and return to idle; safe to repeat."""
        self._discard_outstanding()
        self._document.clear()
        self._result = None
        self._error = None
        self._transition(SessionState.IDLE)

    def close(self) -> None:
        """Tear the session down; late scorer responses are discarded."""
        self._discard_outstanding()
        self._observers.clear()

    def describe(self) -> Mapping[str, Any]:
        return {
            "state": self._state.value,
            "word_count": self._document.word_count,
            "writing_mode": self._mode.active,
            "request_id": self._request_id,
            "outstanding_request_id": self._outstanding_id,
            "has_result": self._result is not None,
            "error": self._error.message if self._error else None,
        }
