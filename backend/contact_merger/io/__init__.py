"""File I/O handlers."""

from .file_reader import FileReader, ReadResult
from .file_writer import FileWriter
from .profile_detector import ProfileDetector

__all__ = [
    "FileReader",
    "ReadResult",
    "FileWriter",
    "ProfileDetector",
]
