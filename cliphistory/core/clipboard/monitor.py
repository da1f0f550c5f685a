"""Clipboard monitoring service for real-time clipboard content detection"""

import threading
import time
import hashlib
from dataclasses import dataclass, field
from typing import Any, Optional, Callable, Set, Tuple
from datetime import datetime
import pyperclip
from PIL import Image, ImageGrab
from loguru import logger

from .fragments import parse_html_fragment
from .images import image_to_png, make_thumbnail


def _normalize_newlines(text: str) -> str:
    # Qt reports LF where the native clipboard may hold CRLF
    return text.replace('\r\n', '\n')


@dataclass
class ClipboardSnapshot:
    """Clipboard content that changed since the previous poll"""
    text: Optional[str] = None
    html: Optional[str] = None
    image: Optional[bytes] = None
    thumbnail: Optional[bytes] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def is_empty(self) -> bool:
        return not self.text and not self.image


class ClipboardMonitor:
    """Real-time clipboard monitoring service"""

    def __init__(self, check_interval: int = 500, config: Any = None):
        """
        Initialize clipboard monitor

        Args:
            check_interval: Check interval in milliseconds
            config: ConfigManager; images are only grabbed while stores.image.enabled
        """
        self.check_interval = check_interval / 1000.0  # Convert to seconds
        self.config = config
        self._running = False
        self._thread: Optional[threading.Thread] = None
        self._last_text_hash: str = ""
        self._last_image_hash: str = ""
        self._callbacks: Set[Callable] = set()
        self._lock = threading.RLock()
        self._html_source: Optional[Tuple[str, str]] = None

        logger.info(f"ClipboardMonitor initialized with {check_interval}ms interval")

    def add_callback(self, callback: Callable[[ClipboardSnapshot], None]) -> None:
        """
        Add a callback for clipboard changes

        Args:
            callback: Function to call with each changed ClipboardSnapshot
        """
        with self._lock:
            self._callbacks.add(callback)
            logger.debug(f"Added callback: {callback.__name__}")

    def remove_callback(self, callback: Callable) -> None:
        """Remove a callback"""
        with self._lock:
            self._callbacks.discard(callback)
            logger.debug(f"Removed callback: {callback.__name__}")

    def start(self) -> None:
        """Start monitoring the clipboard"""
        with self._lock:
            if self._running:
                logger.warning("Monitor already running")
                return

            self._running = True
            self._thread = threading.Thread(target=self._monitor_loop, daemon=True)
            self._thread.start()
            logger.info("Clipboard monitoring started")

    def stop(self) -> None:
        """Stop monitoring the clipboard"""
        with self._lock:
            if not self._running:
                logger.warning("Monitor not running")
                return

            self._running = False

        if self._thread:
            self._thread.join(timeout=5.0)
            self._thread = None

        logger.info("Clipboard monitoring stopped")

    def _monitor_loop(self) -> None:
        """Main monitoring loop"""
        logger.debug("Monitor loop started")

        while self._running:
            self.poll()
            time.sleep(self.check_interval)

        logger.debug("Monitor loop ended")

    def poll(self) -> Optional[ClipboardSnapshot]:
        """
        Read the clipboard once and notify callbacks if it changed

        Returns:
            The snapshot that was dispatched, or None
        """
        snapshot = ClipboardSnapshot()

        try:
            text = pyperclip.paste()
            if text and self._text_changed(text):
                snapshot.text = text
                snapshot.html = self._html_for(text)
        except pyperclip.PyperclipException as e:
            logger.error(f"Failed to read clipboard text: {e}")

        if self._images_enabled():
            image = self._grab_image()
            if image is not None:
                data = image_to_png(image)
                if self._image_changed(data):
                    snapshot.image = data
                    snapshot.thumbnail = make_thumbnail(image)

        if snapshot.is_empty:
            return None

        self._notify_callbacks(snapshot)
        return snapshot

    def offer_html(self, text: str, html: Optional[str]) -> None:
        """
        Record the HTML flavour of the clipboard

        pyperclip only reads plain text, so the Qt thread hands the HTML over
        whenever the system clipboard changes.

        Args:
            text: Plain text the HTML was copied with
            html: Raw clipboard HTML, fragment markers included
        """
        fragment = parse_html_fragment(html)

        with self._lock:
            self._html_source = (_normalize_newlines(text), fragment) if fragment else None

    def _html_for(self, text: str) -> Optional[str]:
        with self._lock:
            source = self._html_source

        if source is None or source[0] != _normalize_newlines(text):
            return None
        return source[1]

    def _images_enabled(self) -> bool:
        if self.config is None:
            return True
        return bool(self.config.get('stores.image.enabled', False))

    @staticmethod
    def _grab_image() -> Optional[Image.Image]:
        try:
            content = ImageGrab.grabclipboard()
        except (OSError, NotImplementedError) as e:
            logger.debug(f"Clipboard image grab unavailable: {e}")
            return None

        # File copies come back as a list of paths
        if isinstance(content, Image.Image):
            return content
        return None

    def _text_changed(self, content: str) -> bool:
        content_hash = hashlib.sha256(content.encode('utf-8', 'surrogatepass')).hexdigest()

        if content_hash != self._last_text_hash:
            self._last_text_hash = content_hash
            return True

        return False

    def _image_changed(self, data: bytes) -> bool:
        image_hash = hashlib.sha256(data).hexdigest()

        if image_hash != self._last_image_hash:
            self._last_image_hash = image_hash
            return True

        return False

    def _notify_callbacks(self, snapshot: ClipboardSnapshot) -> None:
        """
        Notify all callbacks of clipboard change

        Args:
            snapshot: Changed clipboard content
        """
        with self._lock:
            callbacks = self._callbacks.copy()

        for callback in callbacks:
            try:
                callback(snapshot)
            except Exception as e:
                logger.error(f"Error in callback {callback.__name__}: {e}")

    @property
    def is_running(self) -> bool:
        """Check if monitor is running"""
        return self._running
