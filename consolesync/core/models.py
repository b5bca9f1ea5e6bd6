"""
Data models and type definitions for consolesync.

Provides type-safe data structures with validation for the values that cross
module boundaries: list parameters, paginated results, upload slots and
save-footer state.
"""

from __future__ import annotations

import math
import mimetypes
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# A record as the server sends it, or reshaped for presentation. Both are
# plain mappings; the pipeline decides which fields change.
Record = Dict[str, Any]


class SortDirection(str, Enum):
    """Sort direction accepted by list endpoints."""

    ASC = "asc"
    DESC = "desc"


class ListParams(BaseModel):
    """Query parameters recognised by every resource ``list`` call."""

    page: Optional[int] = Field(default=None, ge=1)
    per_page: Optional[int] = Field(default=None, ge=1)
    limit: Optional[int] = Field(default=None, ge=1)
    search: Optional[str] = None
    filters: Dict[str, Any] = Field(default_factory=dict)
    sort: Optional[str] = None
    direction: Optional[SortDirection] = None

    model_config = ConfigDict(use_enum_values=True, extra="forbid")

    @field_validator("direction", mode="before")
    @classmethod
    def normalize_direction(cls, v):
        """Accept any casing and treat blanks as no direction."""
        if isinstance(v, str):
            v = v.strip().lower()
            return v or None
        return v

    @property
    def effective_limit(self) -> Optional[int]:
        return self.limit or self.per_page

    def to_query(self, default_per_page: int = 20) -> Dict[str, Any]:
        """
        Flatten into the query string the API expects.

        ``limit`` wins over ``per_page`` and is always sent as ``limit``.
        Filter entries are lifted to the top level; empty values are dropped.
        """
        query: Dict[str, Any] = {"limit": self.effective_limit or default_per_page}
        if self.page is not None:
            query["page"] = self.page
        if self.search:
            query["search"] = self.search

        for key, value in self.filters.items():
            if value is None or value == "":
                continue
            query[key] = value

        if self.sort:
            query["sort"] = self.sort
        if self.direction:
            query["direction"] = self.direction
        return query


class PaginatedResult(BaseModel):
    """One page of records with its pagination counters."""

    items: List[Record] = Field(default_factory=list)
    page: int = Field(default=1, ge=1)
    per_page: int = Field(..., ge=1)
    total: int = Field(default=0, ge=0)
    total_pages: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def check_page_bounds(self):
        """Enforce the page size bound and derive the page count."""
        if len(self.items) > self.per_page:
            raise ValueError(
                f"page holds {len(self.items)} items but per_page is {self.per_page}"
            )
        self.total_pages = math.ceil(self.total / self.per_page)
        return self

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


class UploadSlot(BaseModel):
    """Upload slot issued by the attachment endpoint."""

    id: Optional[str] = None
    filename: str
    upload_target: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def lift_presign_url(cls, data):
        """Read ``presign_data.url`` into ``upload_target``."""
        if isinstance(data, dict) and "upload_target" not in data:
            presign = data.get("presign_data") or {}
            if isinstance(presign, dict):
                data = {**data, "upload_target": presign.get("url")}
        return data

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        return str(v) if v is not None else None


@dataclass
class PendingFile:
    """A local file attached to a record but not uploaded yet."""

    filename: str
    content: bytes
    content_type: Optional[str] = None

    @classmethod
    def from_path(cls, path: Union[str, Path], content_type: Optional[str] = None) -> "PendingFile":
        path = Path(path)
        guessed, _ = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            content=path.read_bytes(),
            content_type=content_type or guessed,
        )

    @property
    def media_type(self) -> str:
        return self.content_type or "application/octet-stream"


@dataclass(frozen=True)
class SaveState:
    """What the page footer needs to render its save button."""

    is_valid: bool = True
    is_submitting: bool = False
