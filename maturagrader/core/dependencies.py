# maturagrader/core/dependencies.py
import logging
from dataclasses import dataclass, field

from fastapi import HTTPException, Request

from maturagrader.services.collaborators import InMemoryClipboard, QueueNotifier, ScoringService
from maturagrader.services.grading_session import GradingSession

logger = logging.getLogger(__name__)


@dataclass
class SessionShell:
    """The one grading session served by this process and its UI collaborators."""
    scorer: ScoringService
    notifier: QueueNotifier = field(default_factory=QueueNotifier)
    clipboard: InMemoryClipboard = field(default_factory=InMemoryClipboard)
    session: GradingSession = field(init=False)

    def __post_init__(self) -> None:
        self.session = GradingSession(self.scorer, notifier=self.notifier)

    def close(self) -> None:
        self.session.close()


# FastAPI 의존성 함수
async def get_shell(request: Request) -> SessionShell:
    shell = getattr(request.app.state, "shell", None)
    if shell is None:
        logger.error("Session shell requested before application startup")
        raise HTTPException(
            status_code=503,
            detail={"error": "Grading session not initialized", "type": "ServiceInitializationError"},
        )
    return shell
