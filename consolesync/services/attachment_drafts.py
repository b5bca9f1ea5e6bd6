"""Per-service-type attachment drafts kept while a service order is edited."""

from typing import Any, Dict, List, Optional

from consolesync.core.models import Record

DEFAULT_DRAFT_KEY = "default"


def draft_key(service_type_id: Any) -> str:
    if service_type_id is None or service_type_id == "":
        return DEFAULT_DRAFT_KEY
    return str(service_type_id)


class AttachmentDraftStore:
    """
    Attachment lists staged per service type.

    Switching the service type of a form swaps the visible attachment list;
    each type keeps its own draft until the screen is closed. A draft with no
    service type lives under ``"default"``.
    """

    def __init__(self):
        self._drafts: Dict[str, List[Record]] = {}

    def __len__(self) -> int:
        return len(self._drafts)

    def get(self, service_type_id: Any = None) -> List[Record]:
        return list(self._drafts.get(draft_key(service_type_id), []))

    def set(self, service_type_id: Any, attachments: Optional[List[Record]]) -> None:
        """Replace a draft. An empty list removes the key."""
        key = draft_key(service_type_id)
        if attachments:
            self._drafts[key] = list(attachments)
        else:
            self._drafts.pop(key, None)

    def add(self, service_type_id: Any, attachment: Record) -> List[Record]:
        entries = self.get(service_type_id)
        entries.append(attachment)
        self.set(service_type_id, entries)
        return entries

    def remove(self, service_type_id: Any, index: int) -> List[Record]:
        """Remove the entry at ``index``; out-of-range indexes change nothing."""
        entries = self.get(service_type_id)
        if 0 <= index < len(entries):
            del entries[index]
            self.set(service_type_id, entries)
        return entries

    def clear(self) -> None:
        self._drafts.clear()
