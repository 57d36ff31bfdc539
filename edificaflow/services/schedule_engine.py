from __future__ import annotations

import calendar
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

from edificaflow.domain.entities import (
    AppNotification,
    Completion,
    HistoryEntry,
    MaintenanceTask,
)
from edificaflow.domain.enums import Frequency, NotificationKind, TaskStatus

UPCOMING_WINDOW_DAYS = 2
NOTIFICATION_CAP = 50


def notification_id(kind: NotificationKind, task_id: str, next_date: date) -> str:
    return f"{kind.value.lower()}-{task_id}-{next_date.isoformat()}"


def is_overdue(task: MaintenanceTask, today: date) -> bool:
    return task.status == TaskStatus.PENDING and task.next_date < today


def is_upcoming(
    task: MaintenanceTask,
    today: date,
    window_days: int = UPCOMING_WINDOW_DAYS,
) -> bool:
    if task.status != TaskStatus.PENDING:
        return False
    return today <= task.next_date <= today + timedelta(days=window_days)


def display_status(task: MaintenanceTask, today: date) -> TaskStatus:
    if is_overdue(task, today):
        return TaskStatus.OVERDUE
    return task.status


def evaluate(
    tasks: Iterable[MaintenanceTask],
    now: datetime,
    window_days: int = UPCOMING_WINDOW_DAYS,
) -> list[AppNotification]:
    today = now.date()
    candidates: list[AppNotification] = []
    for task in tasks:
        if is_overdue(task, today):
            candidates.append(_overdue_notification(task, now))
        elif is_upcoming(task, today, window_days):
            candidates.append(_upcoming_notification(task, now, window_days))
    return candidates


def merge_notifications(
    existing: Sequence[AppNotification],
    candidates: Iterable[AppNotification],
    cap: int = NOTIFICATION_CAP,
) -> list[AppNotification]:
    seen = {notification.id for notification in existing}
    fresh: list[AppNotification] = []
    for candidate in candidates:
        if candidate.id in seen:
            continue
        seen.add(candidate.id)
        fresh.append(candidate)
    return [*fresh, *existing][:cap]


def advance(
    task: MaintenanceTask,
    completion: Completion,
    now: datetime,
    entry_id: str,
) -> tuple[MaintenanceTask, HistoryEntry]:
    entry = HistoryEntry(
        id=entry_id,
        task_id=task.id,
        task_title=task.title,
        category=task.category,
        location=task.location,
        completed_at=now,
        executed_by=completion.executed_by,
        work_description=completion.work_description,
        attachments=tuple(completion.attachments),
        documentation_link=completion.documentation_link,
    )
    updated = replace(
        task,
        status=TaskStatus.PENDING,
        next_date=next_due_date(task.next_date, task.frequency),
        documentation_link=completion.documentation_link or task.documentation_link,
        last_performed=now.date(),
    )
    return updated, entry


def next_due_date(current: date, frequency: Frequency) -> date:
    if frequency == Frequency.DAILY:
        return current + timedelta(days=1)
    if frequency == Frequency.WEEKLY:
        return current + timedelta(weeks=1)
    if frequency == Frequency.MONTHLY:
        return _add_months(current, 1)
    if frequency == Frequency.QUARTERLY:
        return _add_months(current, 3)
    if frequency == Frequency.ANNUAL:
        return _add_months(current, 12)
    if frequency == Frequency.QUINQUENNIAL:
        return _add_months(current, 60)
    raise ValueError(f"Unknown frequency: {frequency!r}")


def _add_months(base: date, months: int) -> date:
    # Day of month is kept; days past the end of a short month spill into the next one.
    year = base.year + (base.month - 1 + months) // 12
    month = (base.month - 1 + months) % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    if base.day <= last_day:
        return date(year, month, base.day)
    return date(year, month, last_day) + timedelta(days=base.day - last_day)


def _overdue_notification(task: MaintenanceTask, now: datetime) -> AppNotification:
    return AppNotification(
        id=notification_id(NotificationKind.OVERDUE, task.id, task.next_date),
        title="Manutenção Atrasada!",
        message=(
            f'A atividade "{task.title}" deveria ter ocorrido em '
            f"{task.next_date.strftime('%d/%m/%Y')}."
        ),
        kind=NotificationKind.OVERDUE,
        date=now,
    )


def _upcoming_notification(
    task: MaintenanceTask,
    now: datetime,
    window_days: int,
) -> AppNotification:
    return AppNotification(
        id=notification_id(NotificationKind.UPCOMING, task.id, task.next_date),
        title="Próxima Manutenção",
        message=f'Faltam menos de {window_days} dias para a atividade "{task.title}".',
        kind=NotificationKind.UPCOMING,
        date=now,
    )
