"""System tray entry point for the history window"""

import threading
from typing import Callable, List, Optional
from PIL import Image, ImageDraw
import pystray
from pystray import MenuItem, Menu
from loguru import logger

ICON_SIZE = 64


def draw_history_icon(size: int = ICON_SIZE) -> Image.Image:
    """Three stacked cards, the front one with text lines"""
    image = Image.new('RGBA', (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)

    for offset, shade in ((12, (120, 160, 200)), (6, (95, 145, 190)), (0, (70, 130, 180))):
        draw.rounded_rectangle([4 + offset, 16 - offset, 48 + offset, 60 - offset], radius=6, fill=shade)

    for y in (28, 37, 46):
        draw.line([12, y, 40, y], fill=(255, 255, 255), width=3)

    return image


class TrayIcon:
    """
    pystray icon running on its own thread.

    Menu callbacks run on the pystray thread; they should only hand work
    over to the Qt thread.
    """

    def __init__(self, title: str = "Clipboard"):
        self.title = title
        self.icon: Optional[pystray.Icon] = None
        self._entries: List[MenuItem] = []
        self._thread: Optional[threading.Thread] = None

    def add_menu_item(self, title: str, callback: Callable[[], None], default: bool = False) -> None:
        """Append a menu entry; the default entry also runs on a left click"""

        def on_click(icon, item):
            try:
                callback()
            except Exception as e:
                logger.error(f"Tray action '{title}' failed: {e}")

        self._entries.append(MenuItem(title, on_click, default=default))

    def add_separator(self) -> None:
        self._entries.append(Menu.SEPARATOR)

    def start(self) -> None:
        if self.icon is not None:
            logger.warning("Tray icon already running")
            return

        self.icon = pystray.Icon(self.title, draw_history_icon(), self.title, Menu(*self._entries))
        self._thread = threading.Thread(target=self.icon.run, daemon=True)
        self._thread.start()
        logger.info("System tray icon started")

    def stop(self) -> None:
        if self.icon is None:
            return

        self.icon.stop()
        self.icon = None
        logger.info("System tray icon stopped")

    def update_tooltip(self, text: str) -> None:
        if self.icon is not None:
            self.icon.title = text
