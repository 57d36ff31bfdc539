from __future__ import annotations

import os
from datetime import date, datetime

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtTest import QTest  # noqa: E402
from PySide6.QtWidgets import QApplication  # noqa: E402

from edificaflow.domain.entities import AppNotification, MaintenanceTask  # noqa: E402
from edificaflow.domain.enums import Frequency, NotificationKind, Priority  # noqa: E402
from edificaflow.ui.alerts import AlertDebouncer, NotificationPanel  # noqa: E402
from edificaflow.ui.dialogs import ExecutionDialog  # noqa: E402


@pytest.fixture(scope="module")
def qapp() -> QApplication:
    return QApplication.instance() or QApplication([])


def test_debouncer_coalesces_pokes(qapp: QApplication) -> None:
    calls: list[int] = []
    debouncer = AlertDebouncer(lambda: calls.append(1), interval_ms=200)

    for _ in range(5):
        debouncer.poke()
        QTest.qWait(50)
    # Each poke restarted the timer, so nothing has fired yet.
    assert calls == []

    QTest.qWait(400)
    assert calls == [1]


def test_debouncer_fires_again_after_new_change(qapp: QApplication) -> None:
    calls: list[int] = []
    debouncer = AlertDebouncer(lambda: calls.append(1), interval_ms=50)

    debouncer.poke()
    QTest.qWait(200)
    debouncer.poke()
    QTest.qWait(200)

    assert calls == [1, 1]


def test_notification_panel_shows_unread_count(qapp: QApplication) -> None:
    panel = NotificationPanel(on_read=lambda _id: None, on_read_all=lambda: None, on_clear=lambda: None)
    notification = AppNotification(
        id="overdue-t1-2024-05-31",
        title="Manutenção Atrasada!",
        message="",
        kind=NotificationKind.OVERDUE,
        date=datetime(2024, 6, 1, 9, 0),
    )

    panel.render((notification,), 1)
    assert panel.title.text() == "Notificações (1)"
    assert panel.list.count() == 1

    panel.render((), 0)
    assert panel.title.text() == "Notificações"
    assert panel.list.count() == 0


def test_execution_dialog_prefills_responsible(qapp: QApplication) -> None:
    task = MaintenanceTask(
        id="t1",
        title="Teste de bombas",
        description="",
        category="Hidráulica",
        location="Casa de máquinas",
        frequency=Frequency.WEEKLY,
        priority=Priority.HIGH,
        next_date=date(2024, 6, 3),
        responsible="Carlos",
    )

    dialog = ExecutionDialog(task)

    assert dialog.completion().executed_by == "Carlos"
