from __future__ import annotations

import calendar
import logging
import uuid
from collections import Counter
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Iterable, Protocol
from urllib.parse import quote

from edificaflow.domain.entities import (
    AppNotification,
    AppState,
    BuildingStats,
    Completion,
    HistoryEntry,
    MaintenanceTask,
    PlanSuggestion,
)
from edificaflow.domain.enums import Category, Frequency, Priority, TaskStatus
from edificaflow.domain.errors import TaskNotFoundError, ValidationError
from edificaflow.domain.filters import TaskFilters
from edificaflow.domain.validation import is_valid_email

from . import schedule_engine

logger = logging.getLogger(__name__)

GENERATED_TASK_LOCATION = "Local Geral"

FREQUENCY_LABELS = {
    Frequency.DAILY: "Diária",
    Frequency.WEEKLY: "Semanal",
    Frequency.MONTHLY: "Mensal",
    Frequency.QUARTERLY: "Trimestral",
    Frequency.ANNUAL: "Anual",
    Frequency.QUINQUENNIAL: "Quinquenal (5 anos)",
}

_EDITABLE_FIELDS = {
    "title",
    "description",
    "category",
    "location",
    "frequency",
    "priority",
    "next_date",
    "status",
    "responsible",
    "responsible_email",
    "documentation_link",
}


class StateRepository(Protocol):
    def load_state(self) -> AppState: ...

    def save_state(self, state: AppState) -> None: ...


def _new_id() -> str:
    return uuid.uuid4().hex


class MaintenanceService:
    def __init__(
        self,
        repo: StateRepository,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: Callable[[], str] = _new_id,
        notification_cap: int = schedule_engine.NOTIFICATION_CAP,
        upcoming_window_days: int = schedule_engine.UPCOMING_WINDOW_DAYS,
    ) -> None:
        self._repo = repo
        self._clock = clock
        self._new_id = id_factory
        self._notification_cap = notification_cap
        self._window_days = upcoming_window_days
        self._state = AppState()

    def load(self) -> AppState:
        self._state = self._repo.load_state()
        return self._state

    @property
    def state(self) -> AppState:
        return self._state

    @property
    def tasks(self) -> tuple[MaintenanceTask, ...]:
        return self._state.tasks

    @property
    def history(self) -> tuple[HistoryEntry, ...]:
        return self._state.history

    @property
    def categories(self) -> tuple[str, ...]:
        return self._state.categories

    @property
    def notifications(self) -> tuple[AppNotification, ...]:
        return self._state.notifications

    def today(self) -> date:
        return self._clock().date()

    def get_task(self, task_id: str) -> MaintenanceTask | None:
        return next((task for task in self._state.tasks if task.id == task_id), None)

    def list_tasks(self, filters: TaskFilters) -> list[MaintenanceTask]:
        today = self.today()
        tasks = list(self._state.tasks)

        if filters.filter_key == "overdue":
            tasks = [t for t in tasks if schedule_engine.is_overdue(t, today)]
        elif filters.filter_key == "upcoming":
            tasks = [t for t in tasks if schedule_engine.is_upcoming(t, today, self._window_days)]
        elif filters.filter_key == "pending":
            tasks = [t for t in tasks if t.status == TaskStatus.PENDING]
        elif filters.filter_key == "completed":
            tasks = [t for t in tasks if t.status == TaskStatus.COMPLETED]

        if filters.category:
            tasks = [t for t in tasks if t.category == filters.category]

        if filters.due_on:
            tasks = [t for t in tasks if t.next_date == filters.due_on]

        if filters.search:
            needle = filters.search.lower()
            tasks = [
                t
                for t in tasks
                if needle in t.title.lower()
                or needle in t.description.lower()
                or needle in t.location.lower()
            ]
        return tasks

    def tasks_on(self, day: date) -> list[MaintenanceTask]:
        return [task for task in self._state.tasks if task.next_date == day]

    def month_agenda(self, year: int, month: int) -> dict[date, list[MaintenanceTask]]:
        total_days = calendar.monthrange(year, month)[1]
        agenda: dict[date, list[MaintenanceTask]] = {
            date(year, month, day): [] for day in range(1, total_days + 1)
        }
        for task in self._state.tasks:
            if task.next_date in agenda:
                agenda[task.next_date].append(task)
        for day_tasks in agenda.values():
            day_tasks.sort(key=lambda t: t.priority, reverse=True)
        return agenda

    def create_task(self, data: dict) -> MaintenanceTask:
        fields = self._normalize_data(data)
        self._check_email(fields.get("responsible_email"))
        values = {
            "title": "",
            "description": "",
            "category": Category.GENERAL.value,
            "location": "",
            "frequency": Frequency.MONTHLY,
            "priority": Priority.MEDIUM,
            "next_date": self.today(),
            "status": TaskStatus.PENDING,
            "responsible": "",
            "responsible_email": "",
        }
        values.update(fields)
        task = MaintenanceTask(id=self._new_id(), **values)
        self._commit(
            replace(
                self._state,
                tasks=(task, *self._state.tasks),
                categories=self._with_category(task.category),
            )
        )
        logger.info("Task created id=%s title=%s", task.id, task.title)
        return task

    def update_task(self, task_id: str, data: dict) -> MaintenanceTask | None:
        task = self.get_task(task_id)
        if task is None:
            return None
        fields = self._normalize_data(data)
        self._check_email(fields.get("responsible_email"))
        updated = replace(task, **fields)
        self._commit(
            replace(
                self._state,
                tasks=self._replace_task(updated),
                categories=self._with_category(updated.category),
            )
        )
        logger.info("Task updated id=%s", task_id)
        return updated

    def delete_task(self, task_id: str) -> None:
        remaining = tuple(task for task in self._state.tasks if task.id != task_id)
        if len(remaining) == len(self._state.tasks):
            return
        self._commit(replace(self._state, tasks=remaining))
        logger.info("Task deleted id=%s", task_id)

    def complete_task(self, task_id: str, completion: Completion) -> tuple[MaintenanceTask, HistoryEntry]:
        task = self.get_task(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        if not completion.executed_by.strip():
            raise ValidationError("executed_by is required")
        if not completion.work_description.strip():
            raise ValidationError("work_description is required")

        updated, entry = schedule_engine.advance(task, completion, self._clock(), self._new_id())
        self._commit(
            replace(
                self._state,
                tasks=self._replace_task(updated),
                history=(entry, *self._state.history),
            )
        )
        logger.info(
            "Task completed id=%s by=%s next_date=%s",
            task_id,
            completion.executed_by,
            updated.next_date.isoformat(),
        )
        return updated, entry

    def add_category(self, name: str) -> bool:
        category = name.strip()
        if not category or category in self._state.categories:
            return False
        self._commit(replace(self._state, categories=(*self._state.categories, category)))
        logger.info("Category added %s", category)
        return True

    def apply_generated_plan(self, suggestions: Iterable[PlanSuggestion]) -> list[MaintenanceTask]:
        today = self.today()
        categories = list(self._state.categories)
        created: list[MaintenanceTask] = []
        for suggestion in suggestions:
            if suggestion.category not in categories:
                categories.append(suggestion.category)
            created.append(
                MaintenanceTask(
                    id=self._new_id(),
                    title=suggestion.title,
                    description=suggestion.description,
                    category=suggestion.category,
                    location=GENERATED_TASK_LOCATION,
                    frequency=suggestion.frequency,
                    priority=suggestion.priority,
                    next_date=today,
                    status=TaskStatus.PENDING,
                )
            )
        if not created:
            return []
        self._commit(
            replace(
                self._state,
                tasks=(*created, *self._state.tasks),
                categories=tuple(categories),
            )
        )
        logger.info("Generated plan applied tasks=%s", len(created))
        return created

    def refresh_alerts(self, now: datetime | None = None) -> int:
        now = now or self._clock()
        candidates = schedule_engine.evaluate(self._state.tasks, now, self._window_days)
        existing = self._state.notifications
        merged = schedule_engine.merge_notifications(existing, candidates, self._notification_cap)
        existing_ids = {notification.id for notification in existing}
        added = sum(1 for notification in merged if notification.id not in existing_ids)
        # Truncation alone is a change too: a stored list may exceed a lowered cap.
        if tuple(merged) != existing:
            self._commit(replace(self._state, notifications=tuple(merged)))
            logger.info("Alerts refreshed added=%s total=%s", added, len(merged))
        return added

    def unread_count(self) -> int:
        return sum(1 for notification in self._state.notifications if not notification.read)

    def mark_notification_read(self, notification_id: str) -> None:
        notifications = tuple(
            replace(n, read=True) if n.id == notification_id else n
            for n in self._state.notifications
        )
        self._commit(replace(self._state, notifications=notifications))

    def mark_all_read(self) -> None:
        notifications = tuple(replace(n, read=True) for n in self._state.notifications)
        self._commit(replace(self._state, notifications=notifications))

    def clear_notifications(self) -> None:
        self._commit(replace(self._state, notifications=()))

    def get_stats(self) -> BuildingStats:
        today = self.today()
        tasks = self._state.tasks
        return BuildingStats(
            total=len(tasks),
            completed=sum(1 for t in tasks if t.status == TaskStatus.COMPLETED),
            pending=sum(1 for t in tasks if t.status == TaskStatus.PENDING),
            overdue=sum(1 for t in tasks if schedule_engine.is_overdue(t, today)),
            upcoming=sum(
                1 for t in tasks if schedule_engine.is_upcoming(t, today, self._window_days)
            ),
        )

    def category_breakdown(self) -> dict[str, int]:
        counts = Counter(task.category for task in self._state.tasks)
        return dict(counts.most_common())

    def priority_breakdown(self) -> dict[Priority, int]:
        counts = Counter(task.priority for task in self._state.tasks)
        return {level: counts[level] for level in sorted(Priority, reverse=True) if counts[level]}

    def search_history(self, term: str = "") -> list[HistoryEntry]:
        needle = term.strip().lower()
        entries = [
            entry
            for entry in self._state.history
            if not needle
            or needle in entry.task_title.lower()
            or needle in entry.executed_by.lower()
            or needle in entry.category.lower()
            or needle in (entry.location or "").lower()
        ]
        return sorted(entries, key=lambda entry: entry.completed_at, reverse=True)

    @staticmethod
    def calendar_link(task: MaintenanceTask) -> str:
        title = quote(f"Manutenção: {task.title}", safe="")
        details = quote(
            f"{task.description}\n\nLocal: {task.location}\n"
            f"Frequência: {FREQUENCY_LABELS[task.frequency]}\n"
            f"Responsável: {task.responsible or 'Técnico Predial'}",
            safe="",
        )
        day = task.next_date.strftime("%Y%m%d")
        return (
            "https://calendar.google.com/calendar/render?action=TEMPLATE"
            f"&text={title}&details={details}&dates={day}/{day}"
        )

    def _replace_task(self, updated: MaintenanceTask) -> tuple[MaintenanceTask, ...]:
        return tuple(updated if task.id == updated.id else task for task in self._state.tasks)

    def _with_category(self, category: str) -> tuple[str, ...]:
        if not category or category in self._state.categories:
            return self._state.categories
        return (*self._state.categories, category)

    def _commit(self, state: AppState) -> None:
        self._state = state
        self._repo.save_state(state)

    @staticmethod
    def _check_email(email: str | None) -> None:
        if not is_valid_email(email):
            raise ValidationError(f"Invalid e-mail address: {email}")

    @staticmethod
    def _normalize_data(data: dict) -> dict:
        normalized = {key: value for key, value in data.items() if key in _EDITABLE_FIELDS}
        if "frequency" in normalized and not isinstance(normalized["frequency"], Frequency):
            normalized["frequency"] = Frequency(normalized["frequency"])
        if "priority" in normalized and not isinstance(normalized["priority"], Priority):
            value = normalized["priority"]
            normalized["priority"] = Priority[value] if isinstance(value, str) else Priority(value)
        if "status" in normalized:
            status = TaskStatus(normalized["status"])
            # OVERDUE is display-only.
            normalized["status"] = TaskStatus.PENDING if status == TaskStatus.OVERDUE else status
        if "next_date" in normalized and isinstance(normalized["next_date"], str):
            normalized["next_date"] = date.fromisoformat(normalized["next_date"])
        if "documentation_link" in normalized:
            normalized["documentation_link"] = normalized["documentation_link"] or None
        return normalized
