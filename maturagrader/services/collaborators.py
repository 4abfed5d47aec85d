from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Deque, List, Mapping, Optional, Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class ScoringService(Protocol):
    """Opaque essay scorer.

    Receives an immutable snapshot of the essay text and returns a rubric
    result candidate. Failures are raised as exceptions.
    """
    async def grade(self, text: str) -> Mapping[str, Any]: ...


@runtime_checkable
class Clipboard(Protocol):
    def copy(self, text: str) -> None: ...


class NotificationKind(str, Enum):
    DOCUMENT_LOADED = "document_loaded"
    EMPTY_SUBMISSION_REJECTED = "empty_submission_rejected"
    SHARE_COPIED = "share_copied"
    SHARE_FAILED = "share_failed"
    FEATURE_UNAVAILABLE = "feature_unavailable"


@runtime_checkable
class Notifier(Protocol):
    def notify(self, kind: NotificationKind, message: str) -> None: ...


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    message: str


class LoggingNotifier:
    """Fire-and-forget notifier that writes user messages to the log."""

    def notify(self, kind: NotificationKind, message: str) -> None:
        logger.info(f"[{kind.value}] {message}")


class QueueNotifier:
    """Buffers notifications until the shell drains them."""

    def __init__(self, maxlen: int = 50) -> None:
        self._pending: Deque[Notification] = deque(maxlen=maxlen)

    def notify(self, kind: NotificationKind, message: str) -> None:
        self._pending.append(Notification(kind=kind, message=message))

    def drain(self) -> List[Notification]:
        items = list(self._pending)
        self._pending.clear()
        return items


class InMemoryClipboard:
    """Clipboard stand-in for headless shells; keeps the last copied text."""

    def __init__(self) -> None:
        self.content: Optional[str] = None

    def copy(self, text: str) -> None:
        self.content = text
