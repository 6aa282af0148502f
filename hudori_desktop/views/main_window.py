"""
MainWindow — hosts the hudori web frontend.

Layout:
  ┌────────────────────────────────────────┐
  │  QWebEngineView (frontend)             │
  │    ↕ QWebChannel "backend" → Bridge    │
  └────────────────────────────────────────┘
"""

from PySide6.QtCore import QUrl
from PySide6.QtWebChannel import QWebChannel
from PySide6.QtWebEngineWidgets import QWebEngineView
from PySide6.QtWidgets import QMainWindow

from hudori_desktop.services.backend_service import BackendService
from hudori_desktop.views.bridge import Bridge

CHANNEL_NAME = "backend"
START_ROUTE = "/signin"


class MainWindow(QMainWindow):
    """Top-level window wiring the web view to the backend bridge."""

    def __init__(self, service: BackendService, frontend_url: str):
        super().__init__()
        self.setWindowTitle("hudori-desktop")
        self.resize(1024, 768)
        self.setStyleSheet("background-color: rgb(27, 38, 54);")

        # ── Bridge ──────────────────────────────────────────────────
        self.bridge = Bridge(service, self)
        self.channel = QWebChannel(self)
        self.channel.registerObject(CHANNEL_NAME, self.bridge)

        # ── Web view ────────────────────────────────────────────────
        self.view = QWebEngineView(self)
        self.view.page().setWebChannel(self.channel)
        self.setCentralWidget(self.view)
        self.view.load(QUrl(f"{frontend_url.rstrip('/')}{START_ROUTE}"))
