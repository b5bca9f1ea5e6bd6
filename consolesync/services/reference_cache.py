"""
Reference resolution for foreign-key fields.

An autocomplete field stores only the id of the record it points to, but it
has to display that record. ``ReferenceField`` finds the object without a
network round trip whenever it can, looking in this order:

1. the object the user explicitly selected in this field,
2. the current suggestion list,
3. the screen's per-kind cache (suggestions seen so far, seeded objects),
4. the shared query cache keyed by ``(kind, id)``.

When all four miss, ``resolve_or_fetch`` falls back to a single-record fetch.
Caches only grow while a screen is open; staleness is accepted.
"""

from typing import Any, Dict, Iterable, List, Optional, Tuple

import structlog

from consolesync.core.exceptions import ApiError
from consolesync.core.models import ListParams, Record
from consolesync.data.resource_client import ResourceClient

logger = structlog.get_logger(__name__)


def record_id_of(obj: Any) -> Optional[str]:
    """The string id of a record, or None when it has none."""
    if not isinstance(obj, dict):
        return None
    value = obj.get("id")
    if isinstance(value, bool) or value is None or value == "":
        return None
    return str(value)


def _as_id(value: Any) -> Optional[str]:
    if value is None or value == "" or isinstance(value, (bool, dict, list)):
        return None
    return str(value)


class QueryCache:
    """Process-wide store of full objects keyed by ``(kind, id)``."""

    def __init__(self):
        self._entries: Dict[Tuple[str, str], Record] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._entries

    def get(self, kind: str, record_id: str) -> Optional[Record]:
        return self._entries.get((kind, record_id))

    def set(self, kind: str, record_id: str, obj: Record) -> None:
        self._entries[(kind, record_id)] = obj


class ReferenceCache:
    """
    Per-screen cache of referenced objects, scoped by entity kind.

    Every write also lands in the shared query cache when one is attached.
    """

    def __init__(self, query_cache: Optional[QueryCache] = None):
        self.query_cache = query_cache
        self._by_kind: Dict[str, Dict[str, Record]] = {}

    def seed(self, kind: str, obj: Record, record_id: Optional[str] = None) -> Optional[str]:
        """Store ``obj`` under ``record_id`` (or its own id). Returns the id used."""
        key = _as_id(record_id) or record_id_of(obj)
        if key is None or not isinstance(obj, dict):
            return None
        self._by_kind.setdefault(kind, {})[key] = obj
        if self.query_cache is not None:
            self.query_cache.set(kind, key, obj)
        return key

    def remember_all(self, kind: str, objs: Iterable[Record]) -> int:
        """Cache every object that has an id. Returns how many were cached."""
        return sum(1 for obj in objs if self.seed(kind, obj) is not None)

    def lookup(self, kind: str, record_id: str) -> Optional[Record]:
        return self._by_kind.get(kind, {}).get(record_id)

    def entries(self, kind: str) -> Dict[str, Record]:
        return dict(self._by_kind.get(kind, {}))


class ReferenceField:
    """
    Controller behind one autocomplete input.

    Args:
        kind: Entity kind the field references (``"client"``, ``"currency"``)
        client: Resource client used for suggestions and single fetches
        cache: The owning screen's reference cache
        filter_key: Filter the typed query is sent under
        per_page: Number of suggestions requested
    """

    def __init__(
        self,
        kind: str,
        client: ResourceClient,
        cache: ReferenceCache,
        filter_key: str = "name",
        per_page: int = 20,
    ):
        self.kind = kind
        self.client = client
        self.cache = cache
        self.filter_key = filter_key
        self.per_page = per_page

        self.suggestions: List[Record] = []
        self.selected: Optional[Record] = None

    async def complete(self, query: str) -> None:
        """
        Replace the suggestions with the records matching ``query``.

        Every returned candidate is cached, not only the one the user picks.
        A failed fetch leaves the field with no suggestions.
        """
        params = ListParams(per_page=self.per_page, filters={self.filter_key: query})
        try:
            result = await self.client.list(params)
        except ApiError as e:
            logger.warning(
                "Suggestion fetch failed", kind=self.kind, status=e.status, error=e.message
            )
            self.suggestions = []
            return

        self.suggestions = result.items
        self.cache.remember_all(self.kind, result.items)

    def on_change(self, value: Any) -> Optional[str]:
        """
        Record a change of the input and return the id to keep in form state.

        A picked object is remembered as the selection and cached; typed text
        clears the selection.
        """
        picked_id = record_id_of(value)
        if picked_id is not None:
            self.selected = value
            self.cache.seed(self.kind, value, picked_id)
            return picked_id

        self.selected = None
        return _as_id(value)

    def seed_from_record(
        self, record: Record, object_key: Optional[str] = None, id_key: Optional[str] = None
    ) -> Optional[Record]:
        """Cache the object a parent record already embeds (``client`` next to ``client_id``)."""
        obj = record.get(object_key or self.kind)
        if not isinstance(obj, dict):
            return None
        if self.cache.seed(self.kind, obj, record.get(id_key or f"{self.kind}_id")) is None:
            return None
        return obj

    def resolve(self, value: Any) -> Optional[Record]:
        """Find the display object for ``value`` without touching the network."""
        if isinstance(value, dict):
            return value
        record_id = _as_id(value)
        if record_id is None:
            return None

        if self.selected is not None and record_id_of(self.selected) == record_id:
            return self.selected

        for suggestion in self.suggestions:
            if record_id_of(suggestion) == record_id:
                return suggestion

        cached = self.cache.lookup(self.kind, record_id)
        if cached is not None:
            return cached

        if self.cache.query_cache is not None:
            return self.cache.query_cache.get(self.kind, record_id)
        return None

    async def resolve_or_fetch(self, value: Any) -> Optional[Record]:
        """Resolve ``value``, fetching and caching the record when no tier has it."""
        resolved = self.resolve(value)
        record_id = _as_id(value)
        if resolved is not None or record_id is None:
            return resolved

        fetched = await self.client.get(record_id)
        if fetched is not None:
            self.cache.seed(self.kind, fetched, record_id)
            logger.debug("Reference fetched", kind=self.kind, record_id=record_id)
        return fetched
