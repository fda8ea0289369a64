"""Note entity."""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator


class ProcessingStatus(str, Enum):
    """Server-side enrichment state of a note."""

    NOT_PROCESSED = "not_processed"
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class Attachment(BaseModel):
    """A link attached to a note, e.g. an image or a document."""

    type: str
    url: str

    def to_payload(self) -> Dict[str, Any]:
        return {"type": self.type, "url": self.url}


class Note(BaseModel):
    """A note as returned by the backend."""

    id: str = Field(..., description="Backend identifier")
    title: str = Field(default="", description="Display title")
    content: str = Field(..., description="Raw note content")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    user_id: Optional[str] = None
    processing_status: ProcessingStatus = ProcessingStatus.NOT_PROCESSED
    processed_at: Optional[datetime] = None
    enrichment_data: Dict[str, Any] = Field(default_factory=dict)
    attachments: List[Attachment] = Field(default_factory=list)

    @field_validator("id", "user_id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        # Backend ids may be numeric
        return str(value) if isinstance(value, int) else value

    @field_validator("title", mode="before")
    @classmethod
    def default_title(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("processing_status", mode="before")
    @classmethod
    def parse_processing_status(cls, value: Any) -> Any:
        if isinstance(value, ProcessingStatus):
            return value
        try:
            return ProcessingStatus(str(value).lower())
        except ValueError:
            return ProcessingStatus.NOT_PROCESSED

    @field_validator("enrichment_data", "attachments", mode="before")
    @classmethod
    def default_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return {} if info.field_name == "enrichment_data" else []
        return value

    @property
    def is_processed(self) -> bool:
        return self.processing_status == ProcessingStatus.COMPLETED

    @property
    def has_attachments(self) -> bool:
        return bool(self.attachments)

    @property
    def display_title(self) -> str:
        """Enriched title once processing completed, else the raw title."""
        if self.is_processed and self.enrichment_data.get("title"):
            return self.enrichment_data["title"]
        return self.title

    @property
    def display_content(self) -> str:
        if self.is_processed and self.enrichment_data.get("formatted"):
            return self.enrichment_data["formatted"]
        return self.content

    def to_payload(self) -> Dict[str, Any]:
        return {"title": self.title, "content": self.content}
