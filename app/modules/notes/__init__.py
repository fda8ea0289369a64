"""Notes module."""

from modules.notes.datasource import NoteDataSource
from modules.notes.models import Attachment, Note, ProcessingStatus

__all__ = ["Attachment", "Note", "NoteDataSource", "ProcessingStatus"]
