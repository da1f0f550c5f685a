"""System tray integration"""

from .tray_icon import TrayIcon

__all__ = ['TrayIcon']
