"""Clipboard monitoring and capture"""

from .monitor import ClipboardMonitor, ClipboardSnapshot
from .listener import ClipboardListener
from .fragments import parse_html_fragment

__all__ = ['ClipboardMonitor', 'ClipboardSnapshot', 'ClipboardListener', 'parse_html_fragment']
