"""Utility modules"""

from .config_manager import ConfigManager
from .formatting import item_time_ago, display_size

__all__ = ['ConfigManager', 'item_time_ago', 'display_size']
