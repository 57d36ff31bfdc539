from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timedelta

import pytest

from edificaflow.domain.entities import AppNotification, Attachment, Completion, MaintenanceTask
from edificaflow.domain.enums import AttachmentKind, Frequency, NotificationKind, Priority, TaskStatus
from edificaflow.services import schedule_engine
from edificaflow.services.schedule_engine import (
    advance,
    display_status,
    evaluate,
    merge_notifications,
    next_due_date,
)

NOW = datetime(2024, 6, 1, 9, 30)
TODAY = NOW.date()


def make_task(task_id: str = "t1", **overrides) -> MaintenanceTask:
    values = {
        "id": task_id,
        "title": "Inspeção de extintores",
        "description": "Verificar carga e validade",
        "category": "Combate a Incêndio",
        "location": "Garagem",
        "frequency": Frequency.MONTHLY,
        "priority": Priority.HIGH,
        "next_date": TODAY,
        "status": TaskStatus.PENDING,
    }
    values.update(overrides)
    return MaintenanceTask(**values)


def make_notification(index: int) -> AppNotification:
    return AppNotification(
        id=f"upcoming-old{index}-2024-01-01",
        title="Próxima Manutenção",
        message="",
        kind=NotificationKind.UPCOMING,
        date=datetime(2024, 1, 1) + timedelta(minutes=index),
    )


@pytest.mark.parametrize(
    ("offset", "expected"),
    [
        (-1, NotificationKind.OVERDUE),
        (-30, NotificationKind.OVERDUE),
        (0, NotificationKind.UPCOMING),
        (1, NotificationKind.UPCOMING),
        (2, NotificationKind.UPCOMING),
        (3, None),
    ],
)
def test_evaluate_window_boundaries(offset: int, expected: NotificationKind | None) -> None:
    task = make_task(next_date=TODAY + timedelta(days=offset))

    candidates = evaluate([task], NOW)

    if expected is None:
        assert candidates == []
    else:
        assert [c.kind for c in candidates] == [expected]


def test_evaluate_ignores_time_of_day() -> None:
    task = make_task(next_date=TODAY)

    late_evening = evaluate([task], datetime(2024, 6, 1, 23, 59))
    early_morning = evaluate([task], datetime(2024, 6, 1, 0, 0))

    assert [c.kind for c in late_evening] == [NotificationKind.UPCOMING]
    assert [c.kind for c in early_morning] == [NotificationKind.UPCOMING]


def test_evaluate_builds_deterministic_ids() -> None:
    overdue = make_task("a", next_date=date(2024, 5, 30))
    upcoming = make_task("b", next_date=date(2024, 6, 2))

    candidates = evaluate([overdue, upcoming], NOW)

    assert [c.id for c in candidates] == ["overdue-a-2024-05-30", "upcoming-b-2024-06-02"]
    assert all(not c.read and c.date == NOW for c in candidates)


def test_evaluate_skips_completed_tasks() -> None:
    task = make_task(next_date=TODAY - timedelta(days=5), status=TaskStatus.COMPLETED)

    assert evaluate([task], NOW) == []


def test_each_task_yields_at_most_one_kind() -> None:
    tasks = [make_task(f"t{offset}", next_date=TODAY + timedelta(days=offset)) for offset in range(-5, 6)]

    candidates = evaluate(tasks, NOW)

    # Dropping the kind prefix leaves "<task id>-<date>", shared by both kinds of the same task.
    keys = [c.id.split("-", 1)[1] for c in candidates]
    assert len(candidates) == 8
    assert len(keys) == len(set(keys))


def test_merge_is_idempotent() -> None:
    tasks = [make_task("a", next_date=TODAY - timedelta(days=1)), make_task("b", next_date=TODAY)]

    first = merge_notifications([], evaluate(tasks, NOW))
    second = merge_notifications(first, evaluate(tasks, NOW + timedelta(hours=1)))

    assert len(first) == 2
    assert second == first


def test_merge_prepends_new_candidates() -> None:
    existing = [make_notification(1)]
    task = make_task("a", next_date=TODAY)

    merged = merge_notifications(existing, evaluate([task], NOW))

    assert [n.id for n in merged] == ["upcoming-a-2024-06-01", existing[0].id]


def test_merge_caps_and_drops_oldest() -> None:
    existing = [make_notification(i) for i in range(50)]
    tasks = [make_task(f"n{i}", next_date=TODAY) for i in range(3)]

    merged = merge_notifications(existing, evaluate(tasks, NOW))

    assert len(merged) == schedule_engine.NOTIFICATION_CAP
    assert [n.id for n in merged[:3]] == [f"upcoming-n{i}-2024-06-01" for i in range(3)]
    assert merged[3:] == existing[:47]


def test_rescheduled_task_gets_fresh_alert() -> None:
    task = make_task("a", next_date=TODAY - timedelta(days=1))
    notifications = merge_notifications([], evaluate([task], NOW))

    moved = replace(task, next_date=TODAY + timedelta(days=1))
    notifications = merge_notifications(notifications, evaluate([moved], NOW))

    assert [n.id for n in notifications] == ["upcoming-a-2024-06-02", "overdue-a-2024-05-31"]


@pytest.mark.parametrize(
    ("current", "frequency", "expected"),
    [
        (date(2024, 5, 1), Frequency.DAILY, date(2024, 5, 2)),
        (date(2024, 12, 31), Frequency.DAILY, date(2025, 1, 1)),
        (date(2024, 5, 1), Frequency.WEEKLY, date(2024, 5, 8)),
        (date(2024, 1, 15), Frequency.MONTHLY, date(2024, 2, 15)),
        (date(2024, 1, 31), Frequency.MONTHLY, date(2024, 3, 2)),
        (date(2023, 1, 31), Frequency.MONTHLY, date(2023, 3, 3)),
        (date(2024, 12, 15), Frequency.MONTHLY, date(2025, 1, 15)),
        (date(2024, 11, 30), Frequency.QUARTERLY, date(2025, 3, 2)),
        (date(2024, 2, 29), Frequency.ANNUAL, date(2025, 3, 1)),
        (date(2024, 6, 10), Frequency.ANNUAL, date(2025, 6, 10)),
        (date(2024, 2, 29), Frequency.QUINQUENNIAL, date(2029, 3, 1)),
        (date(2023, 7, 4), Frequency.QUINQUENNIAL, date(2028, 7, 4)),
    ],
)
def test_next_due_date(current: date, frequency: Frequency, expected: date) -> None:
    assert next_due_date(current, frequency) == expected


def test_advance_anchors_on_scheduled_date() -> None:
    task = make_task(frequency=Frequency.DAILY, next_date=date(2024, 1, 1))

    updated, _ = advance(task, Completion("Carlos", "Feito"), NOW, "h1")

    assert updated.next_date == date(2024, 1, 2)


def test_advance_snapshots_history_and_resets_status() -> None:
    task = make_task(status=TaskStatus.COMPLETED, documentation_link="https://docs/old")
    attachment = Attachment("foto.jpg", "file:///tmp/foto.jpg", AttachmentKind.IMAGE)
    completion = Completion("Carlos", "Troca de carga", (attachment,), None)

    updated, entry = advance(task, completion, NOW, "h1")

    assert updated.status == TaskStatus.PENDING
    assert updated.documentation_link == "https://docs/old"
    assert updated.last_performed == TODAY
    assert entry.id == "h1"
    assert entry.task_id == task.id
    assert (entry.task_title, entry.category, entry.location) == (task.title, task.category, task.location)
    assert entry.completed_at == NOW
    assert entry.attachments == (attachment,)
    assert entry.documentation_link is None


def test_advance_overrides_documentation_link() -> None:
    task = make_task(documentation_link="https://docs/old")

    updated, entry = advance(task, Completion("Ana", "Ok", (), "https://docs/new"), NOW, "h1")

    assert updated.documentation_link == "https://docs/new"
    assert entry.documentation_link == "https://docs/new"


def test_display_status_derives_overdue() -> None:
    assert display_status(make_task(next_date=TODAY - timedelta(days=1)), TODAY) == TaskStatus.OVERDUE
    assert display_status(make_task(next_date=TODAY), TODAY) == TaskStatus.PENDING
    completed = make_task(next_date=TODAY - timedelta(days=1), status=TaskStatus.COMPLETED)
    assert display_status(completed, TODAY) == TaskStatus.COMPLETED
