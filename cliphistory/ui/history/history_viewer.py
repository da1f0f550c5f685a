"""History viewer window using PyQt6"""

from datetime import datetime, timezone
from typing import Callable, Optional
import pyperclip
from PyQt6.QtWidgets import (
    QApplication, QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QFormLayout,
    QListWidget, QListWidgetItem, QPushButton, QLineEdit, QLabel, QMessageBox,
    QTabWidget, QCheckBox, QSpinBox, QGroupBox
)
from PyQt6.QtCore import Qt, QSize, QTimer
from PyQt6.QtGui import QImage, QPixmap
from sqlalchemy.exc import SQLAlchemyError
from loguru import logger

from .feed import HistoryFeed
from ...core.storage import ReturnedItem, StorageContainer, StorageError, StorageQuery, TextValue
from ...utils import ConfigManager, display_size, item_time_ago

ROW_HEIGHT = 44
POLL_INTERVAL_MS = 5000


class HistoryRow(QWidget):
    """One history row: preview, age, favorite and delete buttons"""

    def __init__(self, item: ReturnedItem, time_format: str,
                 on_favorite: Callable[[int, bool], None], on_delete: Callable[[int], None]):
        super().__init__()
        self.item = item

        layout = QHBoxLayout(self)
        layout.setContentsMargins(6, 2, 6, 2)

        text_column = QVBoxLayout()

        if isinstance(item.value, TextValue):
            preview = QLabel(item.value.text.replace('\n', ' ').replace('\t', ' ')[:200])
            preview.setToolTip(item.value.text[:2000])
        else:
            preview = QLabel()
            pixmap = QPixmap()
            if item.value.data and pixmap.loadFromData(item.value.data):
                preview.setPixmap(pixmap.scaled(32, 32, Qt.AspectRatioMode.KeepAspectRatio))
            else:
                preview.setText("[image]")

        age = QLabel(item_time_ago(item.timestamp, datetime.now(timezone.utc)))
        age.setToolTip(item.timestamp.astimezone().strftime(time_format))
        age.setStyleSheet("color: gray; font-size: 10px;")

        text_column.addWidget(preview)
        text_column.addWidget(age)
        layout.addLayout(text_column, 1)

        self.star_button = QPushButton("★")
        self.star_button.setCheckable(True)
        self.star_button.setChecked(item.is_favorite)
        self.star_button.setToolTip("Favorite")
        self.star_button.setFixedWidth(28)
        self.star_button.toggled.connect(lambda checked: on_favorite(item.data_id, checked))

        delete_button = QPushButton("✕")
        delete_button.setToolTip("Delete")
        delete_button.setFixedWidth(28)
        delete_button.clicked.connect(lambda: on_delete(item.data_id))

        layout.addWidget(self.star_button)
        layout.addWidget(delete_button)


class HistoryList(QListWidget):
    """List widget bound to a HistoryFeed"""

    def __init__(self, viewer: 'HistoryViewer', feed: HistoryFeed):
        super().__init__()
        self.viewer = viewer
        self.feed = feed
        self.itemClicked.connect(self._on_item_clicked)

    def render_items(self):
        self.clear()
        for item in self.feed.items:
            self.append_item(item)

    def append_item(self, item: ReturnedItem, row: Optional[int] = None):
        list_item = QListWidgetItem()
        list_item.setSizeHint(QSize(0, ROW_HEIGHT))
        list_item.setData(Qt.ItemDataRole.UserRole, item.data_id)

        widget = HistoryRow(
            item,
            self.viewer.config.get('app.timedate_format', '%Y-%m-%d %H:%M:%S'),
            self.viewer.set_favorite,
            self.viewer.delete_item
        )

        if row is None:
            self.addItem(list_item)
        else:
            self.insertItem(row, list_item)
        self.setItemWidget(list_item, widget)

    def _on_item_clicked(self, list_item: QListWidgetItem):
        widget = self.itemWidget(list_item)
        if widget is not None:
            self.viewer.copy_item(widget.item)


class HistoryViewer(QMainWindow):
    """Main history viewer window"""

    def __init__(self, store: StorageContainer, config_manager: ConfigManager):
        """
        Initialize history viewer

        Args:
            store: Shared storage container
            config_manager: Application configuration
        """
        super().__init__()
        self.store = store
        self.config = config_manager

        page_size = self.config.get('app.query_return_limit', 25)
        self.recent_feed = HistoryFeed(store, page_size)
        self.starred_feed = HistoryFeed(store, page_size)
        self.search_feed = HistoryFeed(store, page_size)

        self._init_ui()

        self.poll_timer = QTimer(self)
        self.poll_timer.timeout.connect(self._poll_recent)
        self.poll_timer.start(POLL_INTERVAL_MS)

    def _init_ui(self):
        """Initialize user interface"""
        self.setWindowTitle("Clipboard")
        self.resize(520, 640)

        if self.config.get('app.always_on_top', False):
            self.setWindowFlag(Qt.WindowType.WindowStaysOnTopHint, True)

        self.tabs = QTabWidget()
        self.setCentralWidget(self.tabs)

        # Recent
        self.recent_list = HistoryList(self, self.recent_feed)
        self.recent_list.verticalScrollBar().valueChanged.connect(self._on_recent_scrolled)
        self.tabs.addTab(self.recent_list, "Recent")

        # Starred
        self.starred_list = HistoryList(self, self.starred_feed)
        self.tabs.addTab(self.starred_list, "Starred")

        # Search
        search_tab = QWidget()
        search_layout = QVBoxLayout(search_tab)
        search_layout.addWidget(QLabel("Type in your query below"))
        self.search_input = QLineEdit()
        self.search_input.returnPressed.connect(self._run_search)
        search_layout.addWidget(self.search_input)
        self.search_list = HistoryList(self, self.search_feed)
        search_layout.addWidget(self.search_list)
        self.tabs.addTab(search_tab, "Search")

        # Settings
        self.tabs.addTab(self._create_settings_tab(), "Settings")

        self.tabs.currentChanged.connect(self._on_tab_changed)
        self.statusBar().showMessage("Ready")

    def _create_settings_tab(self) -> QWidget:
        tab = QWidget()
        layout = QVBoxLayout(tab)

        app_group = QGroupBox("Application")
        app_form = QFormLayout(app_group)

        self.always_on_top_check = QCheckBox("Always on top (requires restart)")
        self.always_on_top_check.setChecked(bool(self.config.get('app.always_on_top', False)))
        self.always_on_top_check.toggled.connect(lambda v: self._update_setting('app.always_on_top', v))
        app_form.addRow(self.always_on_top_check)

        self.batch_size_spin = QSpinBox()
        self.batch_size_spin.setRange(5, 100)
        self.batch_size_spin.setValue(self.config.get('app.query_return_limit', 25))
        self.batch_size_spin.valueChanged.connect(self._on_batch_size_changed)
        app_form.addRow("Query batch size", self.batch_size_spin)

        layout.addWidget(app_group)

        for kind, title, maximum in (('text', "Text", 1000), ('image', "Images", 10240)):
            group = QGroupBox(title)
            form = QFormLayout(group)

            enabled = QCheckBox(f"Save {title.lower()}?")
            enabled.setChecked(bool(self.config.get(f'stores.{kind}.enabled', False)))
            enabled.toggled.connect(lambda v, k=kind: self._update_setting(f'stores.{k}.enabled', v))
            form.addRow(enabled)

            max_size = QSpinBox()
            max_size.setRange(1, maximum)
            max_size.setValue(min(self.config.get(f'stores.{kind}.max_size', maximum), maximum))
            max_size.setSuffix(" MB")
            max_size.valueChanged.connect(lambda v, k=kind: self._update_setting(f'stores.{k}.max_size', v))
            form.addRow("Max size", max_size)

            layout.addWidget(group)

        self.database_size_label = QLabel()
        layout.addWidget(self.database_size_label)

        clear_button = QPushButton("Clear history")
        clear_button.clicked.connect(self._clear_history)
        layout.addWidget(clear_button)

        layout.addStretch()
        return tab

    # Loading

    def showEvent(self, event):
        super().showEvent(event)
        self._on_tab_changed(self.tabs.currentIndex())

    def _on_tab_changed(self, index: int):
        try:
            if index == 0:
                self.recent_feed.load_initial()
                self.recent_list.render_items()
            elif index == 1:
                self.starred_feed.load(StorageQuery.favorites())
                self.starred_list.render_items()
            elif index == 3:
                self._refresh_database_size()
        except StorageError as e:
            self._report_error("Failed to load history", e)

    def _on_recent_scrolled(self, value: int):
        scroll_bar = self.recent_list.verticalScrollBar()
        if scroll_bar.maximum() - value > ROW_HEIGHT * 3 or not self.recent_feed.can_load_more:
            return

        try:
            for item in self.recent_feed.load_more():
                self.recent_list.append_item(item)
        except StorageError as e:
            self._report_error("Failed to load more items", e)

    def _poll_recent(self):
        if not self.isVisible() or self.tabs.currentIndex() != 0:
            return

        try:
            new_items = self.recent_feed.poll_new()
        except StorageError as e:
            self._report_error("Failed to check for new items", e)
            return

        if len(new_items) == len(self.recent_feed.items):
            self.recent_list.render_items()
            return

        for row, item in enumerate(new_items):
            self.recent_list.append_item(item, row)

    def _run_search(self):
        value = self.search_input.text()

        try:
            if value:
                self.search_feed.load(StorageQuery.search(value))
            else:
                self.search_feed.clear()
        except StorageError as e:
            self._report_error("Search failed", e)
            return

        self.search_list.render_items()
        self.statusBar().showMessage(f"{len(self.search_feed.items)} results")

    # Row actions

    def copy_item(self, item: ReturnedItem):
        """Put a history item back on the clipboard"""
        if isinstance(item.value, TextValue):
            pyperclip.copy(item.value.text)
            self.statusBar().showMessage(f"Copied {len(item.value.text)} characters")
            return

        try:
            data = self.store.get_image(item.data_id)
        except StorageError as e:
            self._report_error("Copy image failed", e)
            return

        image = QImage.fromData(data)
        if image.isNull():
            self.statusBar().showMessage("Stored image could not be decoded")
            logger.error(f"Copy Image Error: undecodable image {item.data_id}")
            return

        QApplication.clipboard().setImage(image)
        self.statusBar().showMessage("Copied image")

    def _feeds(self):
        return ((self.recent_feed, self.recent_list),
                (self.starred_feed, self.starred_list),
                (self.search_feed, self.search_list))

    def set_favorite(self, data_id: int, value: bool):
        try:
            self.store.set_favorite(data_id, value)
        except StorageError as e:
            self._report_error("Failed to update favorite", e)
            return

        for feed, _ in self._feeds():
            feed.mark_favorite(data_id, value)

    def delete_item(self, data_id: int):
        try:
            self.store.delete(data_id)
        except StorageError as e:
            self._report_error("Failed to delete item", e)
            return

        for feed, history_list in self._feeds():
            feed.discard(data_id)
            for row in reversed(range(history_list.count())):
                if history_list.item(row).data(Qt.ItemDataRole.UserRole) == data_id:
                    history_list.takeItem(row)

        self.statusBar().showMessage("Item deleted")

    # Settings

    def _update_setting(self, key: str, value):
        self.config.set(key, value)
        self.config.save()

    def _on_batch_size_changed(self, value: int):
        self._update_setting('app.query_return_limit', value)
        for feed in (self.recent_feed, self.starred_feed, self.search_feed):
            feed.page_size = value

    def _refresh_database_size(self):
        self.database_size_label.setText(f"Database Size {display_size(self.store.db_manager.get_size())}")

    def _clear_history(self):
        reply = QMessageBox.question(
            self,
            "Clear History",
            "Are you sure you want to clear all clipboard history?",
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )

        if reply != QMessageBox.StandardButton.Yes:
            return

        try:
            removed = self.store.clear_database()
        except StorageError as e:
            self._report_error("Failed to clear history", e)
            return

        try:
            self.store.db_manager.vacuum()
        except SQLAlchemyError as e:
            logger.warning(f"Database not compacted after clear: {e}")

        for feed, history_list in self._feeds():
            feed.clear()
            history_list.clear()

        self._refresh_database_size()
        self.statusBar().showMessage(f"History cleared ({removed} rows)")
        logger.info("Clipboard history cleared")

    def _report_error(self, message: str, error: Exception):
        logger.error(f"{message}: {error}")
        self.statusBar().showMessage(f"{message}: {error}")

    def closeEvent(self, event):
        """Hide instead of closing; the tray keeps the application alive"""
        logger.info("History viewer window closed")
        event.ignore()
        self.hide()
