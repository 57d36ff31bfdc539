from __future__ import annotations

import json
from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

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
from edificaflow.infra import models  # noqa: F401
from edificaflow.infra.db import Base
from edificaflow.infra.repository import (
    CATEGORIES_KEY,
    HISTORY_KEY,
    TASKS_KEY,
    BlobRepository,
    task_to_dict,
)


@pytest.fixture()
def repo() -> BlobRepository:
    engine = create_engine(
        "sqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(engine)
    return BlobRepository(sessionmaker(bind=engine, autoflush=False))


def make_task(**overrides) -> MaintenanceTask:
    values = {
        "id": "t1",
        "title": "Teste de bombas",
        "description": "Acionar bombas de recalque",
        "category": "Hidráulica",
        "location": "Casa de máquinas",
        "frequency": Frequency.WEEKLY,
        "priority": Priority.CRITICAL,
        "next_date": date(2024, 6, 3),
        "responsible": "Carlos",
        "responsible_email": "carlos@example.com",
        "documentation_link": "https://docs.example.com/bombas",
        "last_performed": date(2024, 5, 27),
    }
    values.update(overrides)
    return MaintenanceTask(**values)


def test_absent_blobs_load_defaults(repo: BlobRepository) -> None:
    state = repo.load_state()

    assert state == AppState()
    assert state.categories == DEFAULT_CATEGORIES


def test_state_round_trip(repo: BlobRepository) -> None:
    entry = HistoryEntry(
        id="h1",
        task_id="t1",
        task_title="Teste de bombas",
        category="Hidráulica",
        location="Casa de máquinas",
        completed_at=datetime(2024, 5, 27, 14, 5),
        executed_by="Carlos",
        work_description="Bombas revisadas",
        attachments=(Attachment("laudo.pdf", "file:///tmp/laudo.pdf", AttachmentKind.DOCUMENT),),
    )
    notification = AppNotification(
        id="upcoming-t1-2024-06-03",
        title="Próxima Manutenção",
        message="Faltam menos de 2 dias",
        kind=NotificationKind.UPCOMING,
        date=datetime(2024, 6, 1, 8, 0),
        read=True,
    )
    state = AppState(
        tasks=(make_task(), make_task(id="t2", documentation_link=None, last_performed=None)),
        history=(entry,),
        categories=(*DEFAULT_CATEGORIES, "Telhado"),
        notifications=(notification,),
    )

    repo.save_state(state)

    assert repo.load_state() == state


def test_save_replaces_whole_blob(repo: BlobRepository) -> None:
    repo.save_state(AppState(tasks=(make_task(), make_task(id="t2"))))
    repo.save_state(AppState(tasks=(make_task(id="t3"),)))

    assert [task.id for task in repo.load_state().tasks] == ["t3"]


def test_tasks_are_stored_with_camel_case_keys(repo: BlobRepository) -> None:
    repo.save_state(AppState(tasks=(make_task(),)))

    stored = json.loads(repo.load_blob(TASKS_KEY))

    assert stored[0]["nextDate"] == "2024-06-03"
    assert stored[0]["priority"] == "CRITICAL"
    assert stored[0]["responsibleEmail"] == "carlos@example.com"


def test_stored_overdue_status_reads_back_as_pending(repo: BlobRepository) -> None:
    data = task_to_dict(make_task())
    data["status"] = "OVERDUE"
    repo.save_blob(TASKS_KEY, json.dumps([data]))

    assert repo.load_state().tasks[0].status == TaskStatus.PENDING


@pytest.mark.parametrize(
    ("key", "payload"),
    [
        (TASKS_KEY, "{not json"),
        (TASKS_KEY, json.dumps({"id": "t1"})),
        (TASKS_KEY, json.dumps([{"id": "t1"}])),
        (TASKS_KEY, json.dumps([{**task_to_dict(make_task()), "frequency": "HOURLY"}])),
        (HISTORY_KEY, json.dumps([{"id": "h1", "taskId": "t1"}])),
        (CATEGORIES_KEY, json.dumps([1, 2])),
    ],
)
def test_malformed_blob_raises(repo: BlobRepository, key: str, payload: str) -> None:
    repo.save_blob(key, payload)

    with pytest.raises(StoreCorruptedError) as excinfo:
        repo.load_state()

    assert excinfo.value.key == key


def test_malformed_blob_is_left_untouched(repo: BlobRepository) -> None:
    repo.save_blob(TASKS_KEY, "{not json")

    with pytest.raises(StoreCorruptedError):
        repo.load_state()

    assert repo.load_blob(TASKS_KEY) == "{not json"
