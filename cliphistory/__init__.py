"""Clipboard history manager"""

__version__ = '0.3.0'
