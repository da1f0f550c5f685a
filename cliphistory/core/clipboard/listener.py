"""Forwards clipboard snapshots into the storage container"""

from typing import Any
from loguru import logger

from .monitor import ClipboardSnapshot
from ..storage import StorageContainer, StorageError


class ClipboardListener:
    """
    Monitor callback that persists captured clipboard content.

    Capture is best effort: storage failures are logged and the next
    clipboard event is still processed.
    """

    def __init__(self, store: StorageContainer, config: Any):
        """
        Initialize listener

        Args:
            store: Shared storage container
            config: ConfigManager, read at every event so settings changes apply immediately
        """
        self.store = store
        self.config = config

    def handle(self, snapshot: ClipboardSnapshot) -> None:
        """Store the text and image parts of a snapshot as allowed by config"""
        if snapshot.text and self.config.get('stores.text.enabled', True):
            try:
                self.store.add_text(snapshot.text, snapshot.html, self.config)
            except StorageError as e:
                logger.error(f"[add_text] Clipboard Text Error: {e}")

        if snapshot.image and self.config.get('stores.image.enabled', False):
            try:
                self.store.add_image(snapshot.image, snapshot.thumbnail, self.config)
            except StorageError as e:
                logger.error(f"[add_image] Clipboard Image Error: {e}")
