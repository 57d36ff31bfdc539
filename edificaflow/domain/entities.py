from __future__ import annotations

import mimetypes
from dataclasses import dataclass, field
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from .enums import (
    DEFAULT_CATEGORIES,
    AttachmentKind,
    Frequency,
    NotificationKind,
    Priority,
    TaskStatus,
)


@dataclass(frozen=True)
class MaintenanceTask:
    id: str
    title: str
    description: str
    category: str
    location: str
    frequency: Frequency
    priority: Priority
    next_date: date
    status: TaskStatus = TaskStatus.PENDING
    responsible: str = ""
    responsible_email: str = ""
    documentation_link: str | None = None
    last_performed: Optional[date] = None


@dataclass(frozen=True)
class Attachment:
    name: str
    url: str
    kind: AttachmentKind = AttachmentKind.DOCUMENT


def attachment_from_path(path: str | Path) -> Attachment:
    file_path = Path(path).resolve()
    mime_type, _ = mimetypes.guess_type(file_path.name)
    kind = AttachmentKind.IMAGE if (mime_type or "").startswith("image/") else AttachmentKind.DOCUMENT
    return Attachment(name=file_path.name, url=file_path.as_uri(), kind=kind)


@dataclass(frozen=True)
class Completion:
    executed_by: str
    work_description: str
    attachments: tuple[Attachment, ...] = ()
    documentation_link: str | None = None


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    task_id: str
    task_title: str
    category: str
    location: str
    completed_at: datetime
    executed_by: str
    work_description: str
    attachments: tuple[Attachment, ...] = ()
    documentation_link: str | None = None


@dataclass(frozen=True)
class AppNotification:
    id: str
    title: str
    message: str
    kind: NotificationKind
    date: datetime
    read: bool = False


@dataclass(frozen=True)
class PlanSuggestion:
    title: str
    description: str
    category: str
    frequency: Frequency
    priority: Priority
    justification: str | None = None


@dataclass(frozen=True)
class BuildingStats:
    total: int
    completed: int
    pending: int
    overdue: int
    upcoming: int


@dataclass(frozen=True)
class AppState:
    tasks: tuple[MaintenanceTask, ...] = ()
    history: tuple[HistoryEntry, ...] = ()
    categories: tuple[str, ...] = field(default=DEFAULT_CATEGORIES)
    notifications: tuple[AppNotification, ...] = ()
