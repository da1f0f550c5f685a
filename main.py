"""Clipboard history application entry point"""

import sys
import signal
import threading
from PyQt6.QtWidgets import QApplication
from PyQt6.QtCore import QTimer, pyqtSignal, QObject
from loguru import logger

from cliphistory.core.clipboard import ClipboardMonitor, ClipboardListener
from cliphistory.core.storage import StorageContainer, StorageError
from cliphistory.core.storage.database import default_data_dir
from cliphistory.ui.history.history_viewer import HistoryViewer
from cliphistory.ui.tray import TrayIcon
from cliphistory.utils import ConfigManager


class QtSignalBridge(QObject):
    """Bridge for communicating between threads and Qt main thread"""
    show_history_signal = pyqtSignal()
    toggle_monitoring_signal = pyqtSignal()
    quit_signal = pyqtSignal()


def setup_logging(file_logging: bool = True):
    """Configure loguru sinks"""
    logger.remove()

    logger.add(
        sys.stderr,
        level="INFO",
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"
    )

    if file_logging:
        log_dir = default_data_dir() / 'logs'
        log_dir.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_dir / "cliphistory_{time:YYYY-MM-DD}.log",
            rotation="1 day",
            retention="7 days",
            level="DEBUG",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
        )


class ClipboardHistoryApp:
    """Main application: monitor thread, tray thread and the Qt window"""

    def __init__(self):
        self.config_manager = None
        self.store = None
        self.clipboard_monitor = None
        self.listener = None
        self.tray_icon = None
        self.history_viewer = None
        self.qt_app = None
        self.signal_bridge = None

        self._shutdown_event = threading.Event()

    def initialize(self) -> bool:
        """Initialize all components"""
        self.config_manager = ConfigManager()
        setup_logging(self.config_manager.get('app.logging', True))

        logger.info("=" * 60)
        logger.info("Clipboard History Starting")
        logger.info("=" * 60)

        if not self.config_manager.validate():
            logger.error("Invalid configuration")
            return False

        try:
            logger.info("Opening database...")
            self.store = StorageContainer.open(self.config_manager.get('storage.database_path'))
        except StorageError as e:
            logger.error(f"Failed to open database: {e}")
            return False

        check_interval = self.config_manager.get('app.check_interval', 500)
        self.clipboard_monitor = ClipboardMonitor(check_interval, self.config_manager)
        self.listener = ClipboardListener(self.store, self.config_manager)
        self.clipboard_monitor.add_callback(self.listener.handle)

        logger.info("Application initialized successfully")
        return True

    def _show_history(self):
        """Show history viewer window (runs in main thread)"""
        if not self.history_viewer:
            self.history_viewer = HistoryViewer(self.store, self.config_manager)

        if self.history_viewer.isVisible():
            self.history_viewer.hide()
            return

        self.history_viewer.show()
        self.history_viewer.raise_()
        self.history_viewer.activateWindow()

    def _on_qt_clipboard_changed(self):
        """Pass the clipboard's HTML flavour to the monitor (runs in main thread)"""
        mime_data = self.qt_app.clipboard().mimeData()
        if mime_data is None or not mime_data.hasHtml():
            self.clipboard_monitor.offer_html('', None)
            return

        self.clipboard_monitor.offer_html(mime_data.text(), mime_data.html())

    def _toggle_monitoring(self):
        """Toggle clipboard monitoring on/off (runs in main thread)"""
        if self.clipboard_monitor.is_running:
            self.clipboard_monitor.stop()
            self.tray_icon.update_tooltip("Clipboard (Paused)")
        else:
            self.clipboard_monitor.start()
            self.tray_icon.update_tooltip("Clipboard")

    def start(self):
        """Start the application"""
        self.qt_app = QApplication(sys.argv)
        self.qt_app.setQuitOnLastWindowClosed(False)

        self.signal_bridge = QtSignalBridge()
        self.signal_bridge.show_history_signal.connect(self._show_history)
        self.signal_bridge.toggle_monitoring_signal.connect(self._toggle_monitoring)
        self.signal_bridge.quit_signal.connect(self.shutdown)

        self.qt_app.clipboard().dataChanged.connect(self._on_qt_clipboard_changed)
        self.clipboard_monitor.start()

        self.tray_icon = TrayIcon("Clipboard")
        self.tray_icon.add_menu_item(
            "Show History",
            lambda: self.signal_bridge.show_history_signal.emit(),
            default=True
        )
        self.tray_icon.add_menu_item(
            "Pause/Resume Monitoring",
            lambda: self.signal_bridge.toggle_monitoring_signal.emit()
        )
        self.tray_icon.add_separator()
        self.tray_icon.add_menu_item(
            "Quit",
            lambda: self.signal_bridge.quit_signal.emit()
        )
        self.tray_icon.start()

        # Let Python signal handlers run while Qt owns the main loop
        heartbeat = QTimer()
        heartbeat.timeout.connect(lambda: None)
        heartbeat.start(500)

        logger.info("Application started successfully")
        exit_code = self.qt_app.exec()
        self.shutdown()
        sys.exit(exit_code)

    def shutdown(self):
        """Shutdown the application"""
        if self._shutdown_event.is_set():
            return
        self._shutdown_event.set()

        logger.info("Shutting down application...")

        if self.clipboard_monitor and self.clipboard_monitor.is_running:
            self.clipboard_monitor.stop()

        if self.tray_icon:
            self.tray_icon.stop()

        if self.store:
            self.store.close()

        if self.qt_app:
            self.qt_app.quit()

        logger.info("Application shutdown complete")


def main():
    """Main entry point"""
    app = ClipboardHistoryApp()

    def signal_handler(signum, frame):
        logger.info(f"Received signal {signum}")
        app.shutdown()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    if not app.initialize():
        logger.error("Failed to initialize application")
        sys.exit(1)

    app.start()


if __name__ == "__main__":
    main()
