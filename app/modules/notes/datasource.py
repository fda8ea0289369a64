"""Notes data source."""

from typing import Any, Dict, List, Optional

from infrastructure.operations.errors import ValidationError
from modules.base import RestDataSource
from modules.notes.models import Attachment, Note


class NoteDataSource(RestDataSource[Note]):
    """Resilient access to ``/notes``.

    Example:
        notes = NoteDataSource(client, auth=auth)
        note = await notes.create_note("Groceries", "milk, eggs")
    """

    resource = "notes"
    path = "/notes"
    model = Note

    async def create_note(self, title: str, content: str) -> Note:
        return await self.create({"title": title, "content": content})

    async def update_note(
        self,
        note_id: str,
        title: Optional[str] = None,
        content: Optional[str] = None,
    ) -> Note:
        payload: Dict[str, Any] = {}
        if title is not None:
            payload["title"] = title
        if content is not None:
            payload["content"] = content
        return await self.update(note_id, payload)

    async def search(self, query: str) -> List[Note]:
        """Full-text search over notes. Results are not cached as a list."""
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Search query must not be empty", operation="notes_search")

        async def action() -> List[Note]:
            data = await self.client.get(
                self.path, params={"q": query.strip()}, token=self._token()
            )
            return self._parse_list(data)

        notes = await self._execute(self.operation_name("search"), action)
        for note in notes:
            self._store(note)
        return notes

    async def process_note(self, note_id: str) -> Note:
        """Ask the backend to enrich a note.

        Returns:
            The note carrying its new processing status and enrichment data
        """
        self._require_id(note_id)
        return await self._post_for_note("process", f"{self.path}/{note_id}/process")

    async def add_attachment(self, note_id: str, attachment: Attachment) -> Note:
        self._require_id(note_id)
        if not isinstance(attachment, Attachment):
            raise ValidationError(
                "Attachment must be an Attachment", operation="notes_add_attachment"
            )
        if not attachment.type.strip() or not attachment.url.strip():
            raise ValidationError(
                "Attachment type and url must not be empty",
                operation="notes_add_attachment",
            )
        return await self._post_for_note(
            "add_attachment",
            f"{self.path}/{note_id}/attachments",
            attachment.to_payload(),
        )

    async def _post_for_note(
        self, action_name: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> Note:
        async def action() -> Note:
            data = await self.client.post(path, json_data=payload, token=self._token())
            return self._parse(data)

        note = await self._execute(self.operation_name(action_name), action)
        self._store(note)
        self.cache.remove(self.list_cache_key)
        return note

    def validate_payload(self, payload: Dict[str, Any]) -> None:
        super().validate_payload(payload)
        content = payload.get("content")
        if "content" in payload and (not isinstance(content, str) or not content.strip()):
            raise ValidationError("Note content must not be empty", operation=self.resource)
        title = payload.get("title")
        if title is not None and not isinstance(title, str):
            raise ValidationError("Note title must be a string", operation=self.resource)
