from __future__ import annotations

import json
import logging
from datetime import date, datetime
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from edificaflow.domain.entities import (
    AppNotification,
    AppState,
    Attachment,
    HistoryEntry,
    MaintenanceTask,
)
from edificaflow.domain.enums import (
    DEFAULT_CATEGORIES,
    AttachmentKind,
    Frequency,
    NotificationKind,
    Priority,
    TaskStatus,
)
from edificaflow.domain.errors import StoreCorruptedError

from .db import SessionLocal
from .models import BlobModel

logger = logging.getLogger(__name__)

TASKS_KEY = "edificaflow_tasks"
HISTORY_KEY = "edificaflow_history"
CATEGORIES_KEY = "edificaflow_categories"
NOTIFICATIONS_KEY = "edificaflow_notifications"

BLOB_KEYS = (TASKS_KEY, HISTORY_KEY, CATEGORIES_KEY, NOTIFICATIONS_KEY)


def _optional_date(value: str | None) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def task_to_dict(task: MaintenanceTask) -> dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "category": task.category,
        "location": task.location,
        "frequency": task.frequency.value,
        "priority": task.priority.name,
        "nextDate": task.next_date.isoformat(),
        "status": task.status.value,
        "responsible": task.responsible,
        "responsibleEmail": task.responsible_email,
        "documentationLink": task.documentation_link,
        "lastPerformed": task.last_performed.isoformat() if task.last_performed else None,
    }


def task_from_dict(data: dict[str, Any]) -> MaintenanceTask:
    status = TaskStatus(data.get("status", TaskStatus.PENDING.value))
    if status == TaskStatus.OVERDUE:
        status = TaskStatus.PENDING
    return MaintenanceTask(
        id=str(data["id"]),
        title=data["title"],
        description=data.get("description", ""),
        category=data["category"],
        location=data.get("location", ""),
        frequency=Frequency(data["frequency"]),
        priority=Priority[data["priority"]],
        next_date=date.fromisoformat(data["nextDate"]),
        status=status,
        responsible=data.get("responsible") or "",
        responsible_email=data.get("responsibleEmail") or "",
        documentation_link=data.get("documentationLink") or None,
        last_performed=_optional_date(data.get("lastPerformed")),
    )


def attachment_to_dict(attachment: Attachment) -> dict[str, Any]:
    return {"name": attachment.name, "url": attachment.url, "type": attachment.kind.value}


def attachment_from_dict(data: dict[str, Any]) -> Attachment:
    return Attachment(name=data["name"], url=data["url"], kind=AttachmentKind(data["type"]))


def history_to_dict(entry: HistoryEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "taskId": entry.task_id,
        "taskTitle": entry.task_title,
        "category": entry.category,
        "location": entry.location,
        "completedAt": entry.completed_at.isoformat(),
        "executedBy": entry.executed_by,
        "workDescription": entry.work_description,
        "attachments": [attachment_to_dict(item) for item in entry.attachments],
        "documentationLink": entry.documentation_link,
    }


def history_from_dict(data: dict[str, Any]) -> HistoryEntry:
    return HistoryEntry(
        id=str(data["id"]),
        task_id=str(data["taskId"]),
        task_title=data["taskTitle"],
        category=data["category"],
        location=data.get("location", ""),
        completed_at=datetime.fromisoformat(data["completedAt"]),
        executed_by=data["executedBy"],
        work_description=data["workDescription"],
        attachments=tuple(attachment_from_dict(item) for item in data.get("attachments", [])),
        documentation_link=data.get("documentationLink") or None,
    )


def notification_to_dict(notification: AppNotification) -> dict[str, Any]:
    return {
        "id": notification.id,
        "title": notification.title,
        "message": notification.message,
        "type": notification.kind.value,
        "date": notification.date.isoformat(),
        "read": notification.read,
    }


def notification_from_dict(data: dict[str, Any]) -> AppNotification:
    return AppNotification(
        id=data["id"],
        title=data["title"],
        message=data["message"],
        kind=NotificationKind(data["type"]),
        date=datetime.fromisoformat(data["date"]),
        read=bool(data.get("read", False)),
    )


def _category_from_value(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"category must be a string, got {type(value).__name__}")
    return value


class BlobRepository:
    def __init__(self, session_factory: Callable[[], Session] = SessionLocal) -> None:
        self._session_factory = session_factory

    def load_blob(self, key: str) -> Optional[str]:
        with self._session_factory() as session:
            blob = session.get(BlobModel, key)
            return blob.payload if blob else None

    def save_blob(self, key: str, payload: str) -> None:
        with self._session_factory() as session:
            self._put(session, key, payload)
            session.commit()

    def load_state(self) -> AppState:
        tasks = self._load_items(TASKS_KEY, task_from_dict)
        history = self._load_items(HISTORY_KEY, history_from_dict)
        categories = self._load_items(CATEGORIES_KEY, _category_from_value)
        notifications = self._load_items(NOTIFICATIONS_KEY, notification_from_dict)
        state = AppState(
            tasks=tuple(tasks or ()),
            history=tuple(history or ()),
            categories=tuple(categories) if categories is not None else DEFAULT_CATEGORIES,
            notifications=tuple(notifications or ()),
        )
        logger.info(
            "State loaded tasks=%s history=%s categories=%s notifications=%s",
            len(state.tasks),
            len(state.history),
            len(state.categories),
            len(state.notifications),
        )
        return state

    def save_state(self, state: AppState) -> None:
        payloads = {
            TASKS_KEY: [task_to_dict(task) for task in state.tasks],
            HISTORY_KEY: [history_to_dict(entry) for entry in state.history],
            CATEGORIES_KEY: list(state.categories),
            NOTIFICATIONS_KEY: [notification_to_dict(item) for item in state.notifications],
        }
        with self._session_factory() as session:
            for key, items in payloads.items():
                self._put(session, key, json.dumps(items, ensure_ascii=False))
            session.commit()

    def _load_items(self, key: str, convert: Callable[[Any], Any]) -> Optional[list]:
        payload = self.load_blob(key)
        if payload is None:
            return None
        try:
            raw = json.loads(payload)
            if not isinstance(raw, list):
                raise TypeError(f"expected a JSON array, got {type(raw).__name__}")
            return [convert(item) for item in raw]
        except (ValueError, KeyError, TypeError, AttributeError) as exc:
            raise StoreCorruptedError(key, str(exc)) from exc

    @staticmethod
    def _put(session: Session, key: str, payload: str) -> None:
        blob = session.get(BlobModel, key)
        if blob is None:
            session.add(BlobModel(key=key, payload=payload))
        else:
            blob.payload = payload
