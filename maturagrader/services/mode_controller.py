import logging

from maturagrader.core.exceptions import DocumentFrozenError
from maturagrader.services.document import Document

logger = logging.getLogger(__name__)

# Keeps the focus editor interactive; blank, so it never counts as content
PLACEHOLDER_TEXT = " "


class ModeController:
    """Tracks the full-focus writing mode for one document.

    Independent of the grading state, except that the session forces it off
    when a submission starts.
    """

    def __init__(self, document: Document) -> None:
        self._document = document
        self._active = False

    @property
    def active(self) -> bool:
        return self._active

    def enter(self) -> None:
        if self._document.frozen:
            raise DocumentFrozenError("Writing mode is unavailable while grading is in progress")
        if not self._document.text:
            self._document.set_text(PLACEHOLDER_TEXT)
        self._active = True

    def exit(self) -> None:
        self._active = False

    def force_exit(self) -> None:
        if self._active:
            logger.debug("Leaving writing mode for submission")
        self._active = False
