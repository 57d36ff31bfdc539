from __future__ import annotations

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal
from PySide6.QtWidgets import QFrame, QLabel, QMessageBox, QPushButton, QTextEdit, QVBoxLayout

from edificaflow.domain.entities import PlanSuggestion
from edificaflow.domain.enums import RequestState
from edificaflow.services.plan_generator import PlanRequest


class _PlanSignals(QObject):
    finished = Signal(list)


class _PlanJob(QRunnable):
    def __init__(self, request: PlanRequest, description: str):
        super().__init__()
        self.request = request
        self.description = description
        self.signals = _PlanSignals()

    def run(self) -> None:
        suggestions = self.request.submit(self.description)
        self.signals.finished.emit(suggestions)


class AdvisorPanel(QFrame):
    plan_generated = Signal(list)

    def __init__(self, request: PlanRequest, parent=None):
        super().__init__(parent)
        self.request = request
        self.pool = QThreadPool.globalInstance()
        self.setObjectName("AdvisorPanel")

        title = QLabel("Assistente de Manutenção IA")
        title.setProperty("class", "panel-title")

        hint = QLabel(
            'Descreva o seu condomínio ou edifício (ex: "Prédio residencial de 15 andares, '
            'com 2 elevadores, piscina aquecida e gerador próprio") para gerar um plano '
            "de manutenção personalizado."
        )
        hint.setWordWrap(True)
        hint.setProperty("class", "task-meta")

        self.description_input = QTextEdit()
        self.description_input.setMaximumHeight(120)

        self.generate_button = QPushButton("Gerar Plano com IA")
        self.generate_button.clicked.connect(self.generate)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(16, 16, 16, 16)
        layout.addWidget(title)
        layout.addWidget(hint)
        layout.addWidget(self.description_input)
        layout.addWidget(self.generate_button)

    def generate(self) -> None:
        description = self.description_input.toPlainText().strip()
        if not description or not self.request.can_submit:
            return
        job = _PlanJob(self.request, description)
        job.signals.finished.connect(self._on_finished)
        self._sync_button(loading=True)
        self.pool.start(job)

    def _on_finished(self, suggestions: list[PlanSuggestion]) -> None:
        self._sync_button(loading=False)
        if self.request.state == RequestState.FAILED:
            QMessageBox.warning(self, "Erro", self.request.error or "")
            return
        self.description_input.clear()
        self.plan_generated.emit(suggestions)

    def _sync_button(self, loading: bool) -> None:
        self.generate_button.setEnabled(not loading)
        self.generate_button.setText("Gerando plano..." if loading else "Gerar Plano com IA")
