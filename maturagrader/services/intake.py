import logging
from pathlib import PurePath
from typing import Optional

from maturagrader.core.config import settings
from maturagrader.core.exceptions import IntakeDecodeError, IntakeError, UnsupportedFileTypeError

logger = logging.getLogger(__name__)

ACCEPTED_EXTENSIONS = frozenset({".txt", ".md", ".markdown"})
ACCEPTED_CONTENT_TYPES = frozenset({
    "text/plain",
    "text/markdown",
    "text/x-markdown",
    "application/markdown",
})


class FileIntake:
    """Turns an uploaded plain-text or Markdown file into essay text."""

    def __init__(self, max_bytes: Optional[int] = None) -> None:
        self.max_bytes = max_bytes if max_bytes is not None else settings.MAX_UPLOAD_BYTES

    def is_accepted(self, filename: Optional[str], content_type: Optional[str]) -> bool:
        """A file is accepted when either its extension or its MIME type matches."""
        if filename and PurePath(filename).suffix.lower() in ACCEPTED_EXTENSIONS:
            return True
        if content_type:
            return content_type.split(";")[0].strip().lower() in ACCEPTED_CONTENT_TYPES
        return False

    def decode(self, data: bytes, filename: Optional[str] = None, content_type: Optional[str] = None) -> str:
        if not self.is_accepted(filename, content_type):
            raise UnsupportedFileTypeError(
                "Only plain-text (.txt) and Markdown (.md) files are accepted",
                {"filename": filename, "content_type": content_type},
            )

        if len(data) > self.max_bytes:
            raise IntakeError(
                "File is too large",
                {"filename": filename, "size": len(data), "max_bytes": self.max_bytes},
            )

        try:
            text = data.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            logger.info(f"Could not decode {filename or 'upload'} as UTF-8: {exc}")
            raise IntakeDecodeError(
                "File could not be read as UTF-8 text",
                {"filename": filename, "position": exc.start},
            ) from exc

        logger.debug(f"Decoded {filename or 'upload'}: {len(text)} characters")
        return text
