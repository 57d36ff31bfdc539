from __future__ import annotations

import logging
import sys
from pathlib import Path

from PySide6.QtGui import QColor, QFont, QPalette
from PySide6.QtWidgets import QApplication, QMessageBox, QStyleFactory

from edificaflow.config import PROJECT_ROOT, SETTINGS
from edificaflow.domain.errors import StoreCorruptedError
from edificaflow.infra.db import init_db
from edificaflow.infra.logging import setup_logging
from edificaflow.infra.repository import BlobRepository
from edificaflow.services.maintenance_service import MaintenanceService
from edificaflow.services.plan_generator import PlanGenerator, PlanRequest
from edificaflow.ui.main_window import MainWindow

logger = logging.getLogger(__name__)


def _apply_light_palette(app: QApplication) -> None:
    palette = QPalette()
    palette.setColor(QPalette.Window, QColor("#F8FAFC"))
    palette.setColor(QPalette.WindowText, QColor("#1E293B"))
    palette.setColor(QPalette.Base, QColor("#FFFFFF"))
    palette.setColor(QPalette.AlternateBase, QColor("#F1F5F9"))
    palette.setColor(QPalette.Text, QColor("#1E293B"))
    palette.setColor(QPalette.Button, QColor("#FFFFFF"))
    palette.setColor(QPalette.ButtonText, QColor("#1E293B"))
    palette.setColor(QPalette.Highlight, QColor("#2563EB"))
    palette.setColor(QPalette.HighlightedText, QColor("#FFFFFF"))
    app.setPalette(palette)


def _find_qss_path() -> Path | None:
    candidates = [
        Path(__file__).resolve().parent / "ui" / "styles.qss",
        PROJECT_ROOT / "edificaflow" / "ui" / "styles.qss",
    ]
    if getattr(sys, "frozen", False):
        meipass = getattr(sys, "_MEIPASS", None)
        if meipass:
            candidates.append(Path(meipass) / "edificaflow" / "ui" / "styles.qss")

    for path in candidates:
        if path.exists():
            return path
    return None


def load_styles(app: QApplication) -> None:
    qss_path = _find_qss_path()
    if not qss_path:
        return
    app.setStyleSheet(qss_path.read_text(encoding="utf-8"))


def main() -> None:
    setup_logging()
    app = QApplication(sys.argv)

    try:
        init_db()
        service = MaintenanceService(
            BlobRepository(),
            notification_cap=SETTINGS.notification_cap,
            upcoming_window_days=SETTINGS.upcoming_window_days,
        )
        service.load()
    except StoreCorruptedError as exc:
        logger.exception("Refusing to start with corrupted data")
        QMessageBox.critical(None, "Dados corrompidos", str(exc))
        return
    except Exception as exc:  # noqa: BLE001
        logger.exception("Database initialisation failed")
        QMessageBox.critical(None, "DB error", str(exc))
        return

    app.setStyle(QStyleFactory.create("Fusion"))
    _apply_light_palette(app)
    app.setFont(QFont("Segoe UI", 10))
    load_styles(app)

    window = MainWindow(service, PlanRequest(PlanGenerator()))
    window.show()
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
