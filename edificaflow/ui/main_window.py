from __future__ import annotations

from datetime import date

from PySide6.QtCore import QDate, Qt, QUrl
from PySide6.QtGui import QBrush, QColor, QDesktopServices, QKeySequence, QShortcut, QTextCharFormat
from PySide6.QtWidgets import (
    QCalendarWidget,
    QComboBox,
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QHeaderView,
    QLabel,
    QLineEdit,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QSplitter,
    QStackedWidget,
    QTableWidget,
    QTableWidgetItem,
    QVBoxLayout,
    QWidget,
)

from edificaflow.config import SETTINGS
from edificaflow.domain.entities import MaintenanceTask, PlanSuggestion
from edificaflow.domain.enums import TaskStatus
from edificaflow.domain.errors import EdificaFlowError
from edificaflow.domain.filters import TaskFilters
from edificaflow.services.maintenance_service import MaintenanceService
from edificaflow.services.plan_generator import PlanRequest

from .advisor import AdvisorPanel
from .alerts import AlertDebouncer, NotificationPanel
from .dialogs import ExecutionDialog, TaskDialog
from .widgets import (
    PRIORITY_COLORS,
    CardListWidget,
    HistoryItemWidget,
    StatCard,
    TaskItemWidget,
    priority_label,
)

VIEWS = [
    ("Painel", "dashboard"),
    ("Cronograma", "schedule"),
    ("Calendário", "calendar"),
    ("Histórico", "history"),
]

FILTERS = [
    ("Todas", "all"),
    ("Pendentes", "pending"),
    ("Atrasadas", "overdue"),
    ("Próximos dias", "upcoming"),
    ("Concluídas", "completed"),
]


class MainWindow(QWidget):
    def __init__(self, service: MaintenanceService, plan_request: PlanRequest):
        super().__init__()
        self.setWindowTitle("EdificaFlow Gestão Predial")
        self.resize(1360, 800)

        self.service = service
        self.plan_request = plan_request
        self.debouncer = AlertDebouncer(self.evaluate_alerts, SETTINGS.alert_debounce_ms, self)

        main_layout = QHBoxLayout(self)
        main_layout.setContentsMargins(12, 12, 12, 12)

        splitter = QSplitter(Qt.Horizontal)
        main_layout.addWidget(splitter)

        self.pages = QStackedWidget()
        self.page_index: dict[str, int] = {}
        for _, key in VIEWS:
            builder = getattr(self, f"_build_{key}_page")
            self.page_index[key] = self.pages.addWidget(builder())

        self.notification_panel = NotificationPanel(
            on_read=self.mark_notification_read,
            on_read_all=self.mark_all_read,
            on_clear=self.clear_notifications,
        )

        splitter.addWidget(self._build_sidebar())
        splitter.addWidget(self.pages)
        splitter.addWidget(self.notification_panel)
        splitter.setStretchFactor(0, 0)
        splitter.setStretchFactor(1, 3)
        splitter.setStretchFactor(2, 1)
        splitter.setSizes([200, 820, 340])

        QShortcut(QKeySequence("Ctrl+N"), self, self.new_task)

        self.refresh_all()
        self.debouncer.poke()

    def _build_sidebar(self) -> QWidget:
        frame = QFrame()
        frame.setObjectName("Sidebar")
        layout = QVBoxLayout(frame)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(8)

        brand = QLabel("EdificaFlow")
        brand.setProperty("class", "sidebar-title")
        layout.addWidget(brand)

        for label, key in VIEWS:
            button = QPushButton(label)
            button.setProperty("variant", "ghost")
            button.clicked.connect(lambda _=False, k=key: self.show_view(k))
            layout.addWidget(button)

        layout.addStretch()
        add_button = QPushButton("Nova Tarefa")
        add_button.clicked.connect(self.new_task)
        layout.addWidget(add_button)
        return frame

    def _build_dashboard_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setSpacing(12)

        self.stat_cards = {
            "total": StatCard("Total de Atividades", "Cadastradas no sistema"),
            "completed": StatCard("Concluídas", "Neste período"),
            "pending": StatCard("Pendentes", "Aguardando execução"),
            "overdue": StatCard("Atrasadas", "Atenção necessária"),
        }
        cards = QGridLayout()
        for column, card in enumerate(self.stat_cards.values()):
            cards.addWidget(card, 0, column)
        layout.addLayout(cards)

        self.category_table = self._make_table(["Categoria", "Tarefas"])
        self.priority_table = self._make_table(["Prioridade", "Tarefas"])

        charts = QHBoxLayout()
        charts.addWidget(self.category_table, 2)
        charts.addWidget(self.priority_table, 1)

        self.advisor = AdvisorPanel(self.plan_request)
        self.advisor.plan_generated.connect(self.apply_generated_plan)

        body = QHBoxLayout()
        body.addLayout(charts, 2)
        body.addWidget(self.advisor, 1)
        layout.addLayout(body)
        return page

    def _build_schedule_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)
        layout.setSpacing(8)

        toolbar = QHBoxLayout()
        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Buscar por título, descrição ou local")
        self.search_input.textChanged.connect(self.refresh_schedule)

        self.filter_combo = QComboBox()
        for label, key in FILTERS:
            self.filter_combo.addItem(label, key)
        self.filter_combo.currentIndexChanged.connect(self.refresh_schedule)

        self.category_filter = QComboBox()
        self.category_filter.currentIndexChanged.connect(self.refresh_schedule)

        toolbar.addWidget(self.search_input, 1)
        toolbar.addWidget(self.filter_combo)
        toolbar.addWidget(self.category_filter)

        self.task_list = CardListWidget()
        self.task_list.setObjectName("TaskList")
        self.task_list.setSpacing(8)
        self.task_list.itemDoubleClicked.connect(self._on_task_activated)

        self.empty_label = QLabel(
            "Comece adicionando uma manutenção manualmente ou use a IA para gerar um plano."
        )
        self.empty_label.setProperty("class", "task-meta")

        actions = QHBoxLayout()
        execute_button = QPushButton("Registrar execução")
        execute_button.clicked.connect(self.execute_selected)
        edit_button = QPushButton("Editar")
        edit_button.setProperty("variant", "secondary")
        edit_button.clicked.connect(self.edit_selected)
        calendar_button = QPushButton("Google Agenda")
        calendar_button.setProperty("variant", "ghost")
        calendar_button.clicked.connect(self.open_calendar_link)
        delete_button = QPushButton("Excluir")
        delete_button.setProperty("variant", "danger")
        delete_button.clicked.connect(self.delete_selected)
        actions.addWidget(execute_button)
        actions.addWidget(edit_button)
        actions.addWidget(calendar_button)
        actions.addStretch()
        actions.addWidget(delete_button)

        layout.addLayout(toolbar)
        layout.addWidget(self.empty_label)
        layout.addWidget(self.task_list, 1)
        layout.addLayout(actions)
        return page

    def _build_calendar_page(self) -> QWidget:
        page = QWidget()
        layout = QHBoxLayout(page)

        self.calendar = QCalendarWidget()
        self.calendar.setGridVisible(True)
        self.calendar.setVerticalHeaderFormat(QCalendarWidget.NoVerticalHeader)
        self.calendar.selectionChanged.connect(self.refresh_day_tasks)
        self.calendar.currentPageChanged.connect(lambda *_: self.refresh_calendar())

        today_button = QPushButton("Hoje")
        today_button.setProperty("variant", "secondary")
        today_button.clicked.connect(self._go_to_today)

        left = QVBoxLayout()
        left.addWidget(self.calendar, 1)
        left.addWidget(today_button)

        self.day_title = QLabel("")
        self.day_title.setProperty("class", "panel-title")
        self.day_list = CardListWidget()
        self.day_list.setSpacing(6)
        self.day_list.itemDoubleClicked.connect(self._on_task_activated)

        right = QVBoxLayout()
        right.addWidget(self.day_title)
        right.addWidget(self.day_list, 1)

        layout.addLayout(left, 2)
        layout.addLayout(right, 1)
        return page

    def _build_history_page(self) -> QWidget:
        page = QWidget()
        layout = QVBoxLayout(page)

        header = QHBoxLayout()
        self.history_search = QLineEdit()
        self.history_search.setPlaceholderText("Buscar no histórico (tarefa, local, técnico)...")
        self.history_search.textChanged.connect(self.refresh_history)
        self.history_count = QLabel("")
        self.history_count.setProperty("class", "stats")
        header.addWidget(self.history_search, 1)
        header.addWidget(self.history_count)

        self.history_list = CardListWidget()
        self.history_list.setSpacing(8)

        layout.addLayout(header)
        layout.addWidget(self.history_list, 1)
        return page

    @staticmethod
    def _make_table(headers: list[str]) -> QTableWidget:
        table = QTableWidget(0, len(headers))
        table.setHorizontalHeaderLabels(headers)
        table.verticalHeader().setVisible(False)
        table.setEditTriggers(QTableWidget.NoEditTriggers)
        table.setSelectionMode(QTableWidget.NoSelection)
        table.horizontalHeader().setSectionResizeMode(0, QHeaderView.Stretch)
        table.horizontalHeader().setSectionResizeMode(1, QHeaderView.ResizeToContents)
        return table

    def show_view(self, key: str) -> None:
        self.pages.setCurrentIndex(self.page_index[key])

    def refresh_all(self) -> None:
        self.refresh_dashboard()
        self.refresh_category_filter()
        self.refresh_schedule()
        self.refresh_calendar()
        self.refresh_history()
        self._render_notifications()

    def on_state_changed(self) -> None:
        self.refresh_all()
        self.debouncer.poke()

    def refresh_dashboard(self) -> None:
        stats = self.service.get_stats()
        self.stat_cards["total"].set_value(stats.total)
        self.stat_cards["completed"].set_value(stats.completed)
        self.stat_cards["pending"].set_value(stats.pending)
        self.stat_cards["overdue"].set_value(stats.overdue)

        categories = self.service.category_breakdown()
        self.category_table.setRowCount(len(categories))
        for row, (name, count) in enumerate(categories.items()):
            self.category_table.setItem(row, 0, QTableWidgetItem(name))
            self.category_table.setItem(row, 1, QTableWidgetItem(str(count)))

        priorities = self.service.priority_breakdown()
        self.priority_table.setRowCount(len(priorities))
        for row, (level, count) in enumerate(priorities.items()):
            label = QTableWidgetItem(priority_label(level))
            label.setForeground(QBrush(QColor(PRIORITY_COLORS[level])))
            self.priority_table.setItem(row, 0, label)
            self.priority_table.setItem(row, 1, QTableWidgetItem(str(count)))

    def refresh_category_filter(self) -> None:
        current = self.category_filter.currentData()
        self.category_filter.blockSignals(True)
        self.category_filter.clear()
        self.category_filter.addItem("Todas as categorias", None)
        for category in self.service.categories:
            self.category_filter.addItem(category, category)
        index = self.category_filter.findData(current)
        self.category_filter.setCurrentIndex(max(index, 0))
        self.category_filter.blockSignals(False)

    def refresh_schedule(self) -> None:
        search = self.search_input.text().strip()
        filters = TaskFilters(
            filter_key=self.filter_combo.currentData() or "all",
            search=search or None,
            category=self.category_filter.currentData(),
        )
        tasks = self.service.list_tasks(filters)
        self._fill_task_list(self.task_list, tasks)
        self.empty_label.setVisible(not self.service.tasks)

    def refresh_calendar(self) -> None:
        self.calendar.setDateTextFormat(QDate(), QTextCharFormat())
        agenda = self.service.month_agenda(self.calendar.yearShown(), self.calendar.monthShown())
        for day, tasks in agenda.items():
            if not tasks:
                continue
            fmt = QTextCharFormat()
            fmt.setBackground(QBrush(QColor(PRIORITY_COLORS[tasks[0].priority]).lighter(170)))
            fmt.setFontWeight(700)
            self.calendar.setDateTextFormat(QDate(day.year, day.month, day.day), fmt)
        self.refresh_day_tasks()

    def refresh_day_tasks(self) -> None:
        selected: date = self.calendar.selectedDate().toPython()
        self.day_title.setText(selected.strftime("%d/%m/%Y"))
        self._fill_task_list(self.day_list, self.service.tasks_on(selected))

    def refresh_history(self) -> None:
        entries = self.service.search_history(self.history_search.text())
        self.history_list.clear()
        for entry in entries:
            item = QListWidgetItem()
            widget = HistoryItemWidget(entry)
            self.history_list.addItem(item)
            self.history_list.setItemWidget(item, widget)
            item.setSizeHint(widget.sizeHint())
        self.history_count.setText(f"Total de registros: {len(entries)}")

    def _fill_task_list(self, list_widget: CardListWidget, tasks: list[MaintenanceTask]) -> None:
        today = self.service.today()
        list_widget.clear()
        for task in tasks:
            item = QListWidgetItem()
            item.setData(Qt.UserRole, task.id)
            widget = TaskItemWidget(task, today)
            list_widget.addItem(item)
            list_widget.setItemWidget(item, widget)
            item.setSizeHint(widget.sizeHint())
        list_widget.sync_item_sizes()

    def _go_to_today(self) -> None:
        self.calendar.setSelectedDate(QDate.currentDate())
        self.calendar.showToday()

    def _selected_task(self) -> MaintenanceTask | None:
        item = self.task_list.currentItem()
        if not item:
            return None
        return self.service.get_task(item.data(Qt.UserRole))

    def _on_task_activated(self, item: QListWidgetItem) -> None:
        task = self.service.get_task(item.data(Qt.UserRole))
        if not task:
            return
        if task.status == TaskStatus.PENDING:
            self.execute_task(task)
        else:
            self.edit_task(task)

    def new_task(self) -> None:
        dialog = TaskDialog(self.service.categories, parent=self)
        if not dialog.exec():
            return
        self._run(lambda: self.service.create_task(dialog.data()))

    def edit_selected(self) -> None:
        task = self._selected_task()
        if task:
            self.edit_task(task)

    def edit_task(self, task: MaintenanceTask) -> None:
        dialog = TaskDialog(self.service.categories, task, parent=self)
        if not dialog.exec():
            return
        self._run(lambda: self.service.update_task(task.id, dialog.data()))

    def execute_selected(self) -> None:
        task = self._selected_task()
        if task:
            self.execute_task(task)

    def execute_task(self, task: MaintenanceTask) -> None:
        dialog = ExecutionDialog(task, parent=self)
        if not dialog.exec():
            return
        self._run(lambda: self.service.complete_task(task.id, dialog.completion()))

    def delete_selected(self) -> None:
        task = self._selected_task()
        if not task:
            return
        confirm = QMessageBox.question(
            self,
            "Confirmação",
            "Tem certeza que deseja remover esta tarefa?",
        )
        if confirm != QMessageBox.Yes:
            return
        self._run(lambda: self.service.delete_task(task.id))

    def open_calendar_link(self) -> None:
        task = self._selected_task()
        if task:
            QDesktopServices.openUrl(QUrl(self.service.calendar_link(task)))

    def apply_generated_plan(self, suggestions: list[PlanSuggestion]) -> None:
        if not suggestions:
            return
        self._run(lambda: self.service.apply_generated_plan(suggestions))
        self.show_view("schedule")

    def evaluate_alerts(self) -> None:
        before = self.service.notifications
        self.service.refresh_alerts()
        if self.service.notifications != before:
            self._render_notifications()

    def mark_notification_read(self, notification_id: str) -> None:
        self.service.mark_notification_read(notification_id)
        self._render_notifications()

    def mark_all_read(self) -> None:
        self.service.mark_all_read()
        self._render_notifications()

    def clear_notifications(self) -> None:
        self.service.clear_notifications()
        self._render_notifications()

    def _render_notifications(self) -> None:
        self.notification_panel.render(self.service.notifications, self.service.unread_count())

    def _run(self, action) -> None:
        try:
            action()
        except EdificaFlowError as exc:
            QMessageBox.warning(self, "Erro", str(exc))
            return
        self.on_state_changed()
