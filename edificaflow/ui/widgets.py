from __future__ import annotations

from datetime import date
from typing import Callable

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QPushButton,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from edificaflow.domain.entities import AppNotification, HistoryEntry, MaintenanceTask
from edificaflow.domain.enums import AttachmentKind, Frequency, NotificationKind, Priority, TaskStatus
from edificaflow.services.maintenance_service import FREQUENCY_LABELS
from edificaflow.services.schedule_engine import display_status

STATUS_LABELS = {
    TaskStatus.PENDING: "Pendente",
    TaskStatus.COMPLETED: "Concluída",
    TaskStatus.OVERDUE: "Atrasada",
}

PRIORITY_OPTIONS = [
    ("Baixa", Priority.LOW),
    ("Média", Priority.MEDIUM),
    ("Alta", Priority.HIGH),
    ("Crítica", Priority.CRITICAL),
]

PRIORITY_COLORS = {
    Priority.LOW: "#94A3B8",
    Priority.MEDIUM: "#3B82F6",
    Priority.HIGH: "#F97316",
    Priority.CRITICAL: "#EF4444",
}

FREQUENCY_OPTIONS = [(FREQUENCY_LABELS[frequency], frequency) for frequency in Frequency]

STATUS_COLORS = {
    TaskStatus.PENDING: "#64748B",
    TaskStatus.COMPLETED: "#059669",
    TaskStatus.OVERDUE: "#DC2626",
}


def priority_label(priority: Priority) -> str:
    return next((label for label, value in PRIORITY_OPTIONS if value == priority), "Desconhecida")


class TaskItemWidget(QWidget):
    def __init__(self, task: MaintenanceTask, today: date):
        super().__init__()
        self.task = task

        self.setObjectName("TaskCard")
        self.setAttribute(Qt.WA_StyledBackground, True)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        self.setMinimumHeight(64)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 8, 12, 8)
        layout.setSpacing(4)

        title = QLabel(task.title.strip() if task.title else "Sem título")
        title.setProperty("class", "task-title")
        title.setWordWrap(True)
        title.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Preferred)

        status = display_status(task, today)
        meta_parts = [
            f"Próxima: {task.next_date.strftime('%d/%m/%Y')}",
            FREQUENCY_LABELS[task.frequency],
            task.category,
        ]
        if task.location:
            meta_parts.append(task.location)
        if task.responsible:
            meta_parts.append(f"Responsável: {task.responsible}")

        meta = QLabel(" | ".join(meta_parts))
        meta.setProperty("class", "task-meta")
        meta.setWordWrap(True)
        meta.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Preferred)

        priority = QLabel(priority_label(task.priority))
        priority.setProperty("class", "task-priority")
        priority.setStyleSheet(f"background-color: {PRIORITY_COLORS[task.priority]};")
        priority.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)

        status_label = QLabel(STATUS_LABELS[status])
        status_label.setProperty("class", "task-status")
        status_label.setStyleSheet(f"color: {STATUS_COLORS[status]};")

        header = QHBoxLayout()
        header.setSpacing(8)
        header.addWidget(title, 1)
        header.addWidget(status_label, 0, Qt.AlignTop)
        header.addWidget(priority, 0, Qt.AlignTop)

        layout.addLayout(header)
        layout.addWidget(meta)

    def set_selected(self, selected: bool) -> None:
        self.setProperty("selected", selected)
        self.style().unpolish(self)
        self.style().polish(self)


class HistoryItemWidget(QFrame):
    def __init__(self, entry: HistoryEntry):
        super().__init__()
        self.entry = entry
        self.setObjectName("HistoryCard")

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 8, 12, 8)
        layout.setSpacing(4)

        title = QLabel(entry.task_title)
        title.setProperty("class", "task-title")

        meta = QLabel(
            " | ".join(
                part
                for part in [
                    entry.completed_at.strftime("%d/%m/%Y %H:%M"),
                    f"Técnico: {entry.executed_by}",
                    entry.category,
                    entry.location,
                ]
                if part
            )
        )
        meta.setProperty("class", "task-meta")

        description = QLabel(entry.work_description)
        description.setWordWrap(True)

        layout.addWidget(title)
        layout.addWidget(meta)
        layout.addWidget(description)

        links = []
        for attachment in entry.attachments:
            icon = "🖼" if attachment.kind == AttachmentKind.IMAGE else "📄"
            links.append(f'{icon} <a href="{attachment.url}">{attachment.name}</a>')
        if entry.documentation_link:
            links.append(f'🔗 <a href="{entry.documentation_link}">Documentação</a>')
        if links:
            attachments = QLabel(" ".join(links))
            attachments.setTextFormat(Qt.RichText)
            attachments.setOpenExternalLinks(True)
            attachments.setWordWrap(True)
            layout.addWidget(attachments)


class NotificationItemWidget(QFrame):
    def __init__(self, notification: AppNotification, on_read: Callable[[str], None]):
        super().__init__()
        self.notification = notification
        self.setObjectName("NotificationCard")
        self.setProperty("kind", notification.kind.value.lower())
        self.setProperty("read", notification.read)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(10, 6, 10, 6)

        text = QVBoxLayout()
        title = QLabel(notification.title)
        title.setProperty("class", "task-title")
        color = "#DC2626" if notification.kind == NotificationKind.OVERDUE else "#2563EB"
        title.setStyleSheet(f"color: {color};")
        message = QLabel(notification.message)
        message.setWordWrap(True)
        stamp = QLabel(notification.date.strftime("%d/%m/%Y %H:%M"))
        stamp.setProperty("class", "task-meta")
        text.addWidget(title)
        text.addWidget(message)
        text.addWidget(stamp)
        layout.addLayout(text, 1)

        if not notification.read:
            read_button = QPushButton("Lida")
            read_button.setProperty("variant", "ghost")
            read_button.clicked.connect(lambda: on_read(notification.id))
            layout.addWidget(read_button, 0, Qt.AlignTop)


class StatCard(QFrame):
    def __init__(self, label: str, sub: str):
        super().__init__()
        self.setObjectName("StatCard")
        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 12, 16, 12)

        title = QLabel(label)
        title.setProperty("class", "section-title")
        self.value_label = QLabel("0")
        self.value_label.setProperty("class", "stat-value")
        subtitle = QLabel(sub)
        subtitle.setProperty("class", "task-meta")

        layout.addWidget(title)
        layout.addWidget(self.value_label)
        layout.addWidget(subtitle)

    def set_value(self, value: int) -> None:
        self.value_label.setText(str(value))


class CardListWidget(QListWidget):
    def sync_item_sizes(self) -> None:
        for index in range(self.count()):
            item = self.item(index)
            widget = self.itemWidget(item)
            if widget:
                item.setSizeHint(widget.sizeHint())
