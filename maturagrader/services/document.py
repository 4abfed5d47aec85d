import logging

from maturagrader.core.exceptions import DocumentFrozenError

logger = logging.getLogger(__name__)


def count_words(text: str) -> int:
    """Number of maximal non-whitespace runs in `text`."""
    return len(text.split())


class Document:
    """Editable essay text owned by a grading session.

    The word count is always derived from the current text. While a grading
    request is outstanding the session freezes the document and edits are
    rejected so the graded snapshot and the displayed text cannot diverge.
    """

    def __init__(self, text: str = "") -> None:
        self._text = text
        self._frozen = False

    @property
    def text(self) -> str:
        return self._text

    @property
    def word_count(self) -> int:
        return count_words(self._text)

    @property
    def is_blank(self) -> bool:
        return not self._text.strip()

    @property
    def frozen(self) -> bool:
        return self._frozen

    def set_text(self, text: str) -> None:
        if self._frozen:
            raise DocumentFrozenError(
                "Document cannot be edited while grading is in progress",
                {"attempted_length": len(text)},
            )
        self._text = text

    def clear(self) -> None:
        self.set_text("")

    def snapshot(self) -> str:
        return self._text

    def freeze(self) -> None:
        self._frozen = True

    def unfreeze(self) -> None:
        self._frozen = False
