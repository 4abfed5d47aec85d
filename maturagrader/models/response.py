from typing import Any, Dict, List, Optional

from pydantic import BaseModel

from maturagrader.services.collaborators import NotificationKind


class NotificationPayload(BaseModel):
    kind: NotificationKind
    message: str


class ErrorPayload(BaseModel):
    type: str
    message: str
    details: Dict[str, Any] = {}


class SessionView(BaseModel):
    state: str
    text: str
    word_count: int
    writing_mode: bool
    request_id: int
    result: Optional[Dict[str, Any]] = None
    percentage: Optional[int] = None
    formal_requirements_conflict: bool = False
    error: Optional[ErrorPayload] = None
    notifications: List[NotificationPayload] = []


class ShareResponse(BaseModel):
    text: str
    copied: bool
    notifications: List[NotificationPayload] = []
