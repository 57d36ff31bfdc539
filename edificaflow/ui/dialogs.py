from __future__ import annotations

from PySide6.QtCore import QDate
from PySide6.QtWidgets import (
    QComboBox,
    QDateEdit,
    QDialog,
    QFileDialog,
    QFormLayout,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QLineEdit,
    QListWidget,
    QMessageBox,
    QPushButton,
    QTextEdit,
    QVBoxLayout,
)

from edificaflow.domain.entities import Attachment, Completion, MaintenanceTask, attachment_from_path
from edificaflow.domain.enums import Frequency, Priority
from edificaflow.domain.validation import is_valid_email

from .widgets import FREQUENCY_OPTIONS, PRIORITY_OPTIONS


class TaskDialog(QDialog):
    def __init__(self, categories: tuple[str, ...], task: MaintenanceTask | None = None, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Editar Tarefa" if task else "Nova Tarefa")
        self.resize(520, 560)

        self.title_input = QLineEdit()
        self.title_input.setPlaceholderText("Ex: Inspeção de extintores")

        self.description_input = QTextEdit()
        self.description_input.setMaximumHeight(100)

        self.category_combo = QComboBox()
        for category in categories:
            self.category_combo.addItem(category, category)

        add_category_button = QPushButton("+")
        add_category_button.setProperty("variant", "secondary")
        add_category_button.setToolTip("Nova categoria")
        add_category_button.clicked.connect(self._add_category)

        category_row = QHBoxLayout()
        category_row.addWidget(self.category_combo, 1)
        category_row.addWidget(add_category_button)

        self.location_input = QLineEdit()
        self.location_input.setPlaceholderText("Ex: Subsolo, Bloco A")

        self.frequency_combo = QComboBox()
        for label, value in FREQUENCY_OPTIONS:
            self.frequency_combo.addItem(label, value)

        self.priority_combo = QComboBox()
        for label, value in PRIORITY_OPTIONS:
            self.priority_combo.addItem(label, value)

        self.next_date_input = QDateEdit()
        self.next_date_input.setCalendarPopup(True)
        self.next_date_input.setDate(QDate.currentDate())

        self.responsible_input = QLineEdit()
        self.email_input = QLineEdit()
        self.email_input.setPlaceholderText("tecnico@empresa.com")
        self.email_input.textChanged.connect(self._on_email_changed)
        self.email_error = QLabel("E-mail inválido")
        self.email_error.setProperty("class", "error")
        self.email_error.setVisible(False)

        self.link_input = QLineEdit()
        self.link_input.setPlaceholderText("https://")

        form = QFormLayout()
        form.addRow("Título", self.title_input)
        form.addRow("Descrição", self.description_input)
        form.addRow("Categoria", category_row)
        form.addRow("Local", self.location_input)
        form.addRow("Frequência", self.frequency_combo)
        form.addRow("Prioridade", self.priority_combo)
        form.addRow("Próxima data", self.next_date_input)
        form.addRow("Responsável", self.responsible_input)
        form.addRow("E-mail", self.email_input)
        form.addRow("", self.email_error)
        form.addRow("Documentação", self.link_input)

        cancel_button = QPushButton("Cancelar")
        cancel_button.setProperty("variant", "ghost")
        cancel_button.clicked.connect(self.reject)
        save_button = QPushButton("Salvar")
        save_button.clicked.connect(self._on_save)

        buttons = QHBoxLayout()
        buttons.addStretch()
        buttons.addWidget(cancel_button)
        buttons.addWidget(save_button)

        layout = QVBoxLayout(self)
        layout.addLayout(form)
        layout.addLayout(buttons)

        if task:
            self._populate(task)
        else:
            self.frequency_combo.setCurrentIndex(self.frequency_combo.findData(Frequency.MONTHLY))
            self.priority_combo.setCurrentIndex(self.priority_combo.findData(Priority.MEDIUM))

    def _populate(self, task: MaintenanceTask) -> None:
        self.title_input.setText(task.title)
        self.description_input.setPlainText(task.description)
        index = self.category_combo.findData(task.category)
        if index < 0:
            self.category_combo.addItem(task.category, task.category)
            index = self.category_combo.count() - 1
        self.category_combo.setCurrentIndex(index)
        self.location_input.setText(task.location)
        self.frequency_combo.setCurrentIndex(self.frequency_combo.findData(task.frequency))
        self.priority_combo.setCurrentIndex(self.priority_combo.findData(task.priority))
        self.next_date_input.setDate(QDate(task.next_date.year, task.next_date.month, task.next_date.day))
        self.responsible_input.setText(task.responsible)
        self.email_input.setText(task.responsible_email)
        self.link_input.setText(task.documentation_link or "")

    def _add_category(self) -> None:
        name, ok = QInputDialog.getText(self, "Nova categoria", "Nome da categoria")
        name = name.strip()
        if not ok or not name:
            return
        if self.category_combo.findData(name) < 0:
            self.category_combo.addItem(name, name)
        self.category_combo.setCurrentIndex(self.category_combo.findData(name))

    def _on_email_changed(self, value: str) -> None:
        self.email_error.setVisible(not is_valid_email(value))

    def _on_save(self) -> None:
        if not self.title_input.text().strip():
            QMessageBox.warning(self, "Título obrigatório", "Informe o título da tarefa.")
            return
        if not is_valid_email(self.email_input.text()):
            self.email_error.setVisible(True)
            return
        self.accept()

    def data(self) -> dict:
        return {
            "title": self.title_input.text().strip(),
            "description": self.description_input.toPlainText().strip(),
            "category": self.category_combo.currentData(),
            "location": self.location_input.text().strip(),
            "frequency": self.frequency_combo.currentData(),
            "priority": self.priority_combo.currentData(),
            "next_date": self.next_date_input.date().toPython(),
            "responsible": self.responsible_input.text().strip(),
            "responsible_email": self.email_input.text().strip(),
            "documentation_link": self.link_input.text().strip() or None,
        }


class ExecutionDialog(QDialog):
    def __init__(self, task: MaintenanceTask, parent=None):
        super().__init__(parent)
        self.task = task
        self.attachments: list[Attachment] = []
        self.setWindowTitle(f"Concluir: {task.title}")
        self.resize(560, 520)

        location = QLabel(task.location or "Local não definido")
        location.setProperty("class", "task-meta")

        self.executed_by_input = QLineEdit(task.responsible)
        self.executed_by_input.setPlaceholderText("Nome do técnico ou empresa")

        self.work_input = QTextEdit()
        self.work_input.setPlaceholderText("Descreva o serviço executado")

        self.attachments_list = QListWidget()
        self.attachments_list.setMaximumHeight(110)

        attach_button = QPushButton("Anexar arquivos")
        attach_button.setProperty("variant", "secondary")
        attach_button.clicked.connect(self._pick_files)

        self.link_input = QLineEdit(task.documentation_link or "")
        self.link_input.setPlaceholderText("Link de documentação (opcional)")

        form = QFormLayout()
        form.addRow("Executado por", self.executed_by_input)
        form.addRow("Descrição do serviço", self.work_input)
        form.addRow("Anexos", self.attachments_list)
        form.addRow("", attach_button)
        form.addRow("Documentação", self.link_input)

        cancel_button = QPushButton("Cancelar")
        cancel_button.setProperty("variant", "ghost")
        cancel_button.clicked.connect(self.reject)
        complete_button = QPushButton("Concluir execução")
        complete_button.clicked.connect(self._on_complete)

        buttons = QHBoxLayout()
        buttons.addStretch()
        buttons.addWidget(cancel_button)
        buttons.addWidget(complete_button)

        layout = QVBoxLayout(self)
        layout.addWidget(location)
        layout.addLayout(form)
        layout.addLayout(buttons)

    def _pick_files(self) -> None:
        paths, _ = QFileDialog.getOpenFileNames(self, "Anexar arquivos")
        for path in paths:
            attachment = attachment_from_path(path)
            self.attachments.append(attachment)
            self.attachments_list.addItem(attachment.name)

    def _on_complete(self) -> None:
        if not self.executed_by_input.text().strip() or not self.work_input.toPlainText().strip():
            QMessageBox.warning(
                self,
                "Campos obrigatórios",
                "Informe quem executou e a descrição do serviço.",
            )
            return
        self.accept()

    def completion(self) -> Completion:
        return Completion(
            executed_by=self.executed_by_input.text().strip(),
            work_description=self.work_input.toPlainText().strip(),
            attachments=tuple(self.attachments),
            documentation_link=self.link_input.text().strip() or None,
        )
