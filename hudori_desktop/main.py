"""
hudori-desktop — Python UI Entry Point

Launches the PySide6 (Qt) window that renders the hudori frontend and
bridges its calls to the chat backend over HTTP.
"""

import sys

import structlog
from PySide6.QtWidgets import QApplication

from hudori_desktop.config import HudoriSettings
from hudori_desktop.logging_config import configure_logging
from hudori_desktop.services.backend_service import BackendService
from hudori_desktop.views.main_window import MainWindow

logger = structlog.get_logger(__name__)


def main():
    settings = HudoriSettings()
    configure_logging(verbose=settings.verbose, log_json=settings.log_json)

    app = QApplication(sys.argv)
    app.setApplicationName("hudori-desktop")
    app.setOrganizationName("hudori")

    service = BackendService.from_settings(settings)
    window = MainWindow(service, settings.frontend_url)
    window.show()
    logger.info("window shown", api_url=settings.api_url, frontend_url=settings.frontend_url)

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
