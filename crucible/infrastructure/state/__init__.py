"""
State persistence
"""
from .file_store import FileStateStore

__all__ = ["FileStateStore"]
