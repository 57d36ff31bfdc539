from __future__ import annotations

from typing import Callable

from PySide6.QtCore import QObject, QTimer
from PySide6.QtWidgets import (
    QFrame,
    QHBoxLayout,
    QLabel,
    QListWidgetItem,
    QPushButton,
    QVBoxLayout,
)

from edificaflow.domain.entities import AppNotification

from .widgets import CardListWidget, NotificationItemWidget


class AlertDebouncer(QObject):
    """Coalesces bursts of task changes into one alert evaluation.

    Every poke restarts the single-shot timer; pending evaluations are never queued.
    """

    def __init__(self, callback: Callable[[], None], interval_ms: int, parent=None):
        super().__init__(parent)
        self.timer = QTimer(self)
        self.timer.setSingleShot(True)
        self.timer.setInterval(interval_ms)
        self.timer.timeout.connect(callback)

    def poke(self) -> None:
        self.timer.start()


class NotificationPanel(QFrame):
    def __init__(
        self,
        on_read: Callable[[str], None],
        on_read_all: Callable[[], None],
        on_clear: Callable[[], None],
        parent=None,
    ):
        super().__init__(parent)
        self.setObjectName("NotificationPanel")
        self.on_read = on_read

        self.title = QLabel("Notificações")
        self.title.setProperty("class", "panel-title")

        read_all_button = QPushButton("Marcar todas como lidas")
        read_all_button.setProperty("variant", "ghost")
        read_all_button.clicked.connect(on_read_all)

        clear_button = QPushButton("Limpar")
        clear_button.setProperty("variant", "ghost")
        clear_button.clicked.connect(on_clear)

        header = QHBoxLayout()
        header.addWidget(self.title)
        header.addStretch()
        header.addWidget(read_all_button)
        header.addWidget(clear_button)

        self.list = CardListWidget()
        self.list.setObjectName("NotificationList")
        self.list.setSpacing(6)

        self.empty_label = QLabel("Nenhuma notificação por enquanto.")
        self.empty_label.setProperty("class", "task-meta")

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.addLayout(header)
        layout.addWidget(self.empty_label)
        layout.addWidget(self.list)

    def render(self, notifications: tuple[AppNotification, ...], unread: int) -> None:
        self.list.clear()
        self.title.setText(f"Notificações ({unread})" if unread else "Notificações")
        self.empty_label.setVisible(not notifications)
        for notification in notifications:
            item = QListWidgetItem()
            widget = NotificationItemWidget(notification, self.on_read)
            self.list.addItem(item)
            self.list.setItemWidget(item, widget)
            item.setSizeHint(widget.sizeHint())
