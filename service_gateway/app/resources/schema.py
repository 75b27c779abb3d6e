"""
Schema descriptors for the mission control resource collections.
"""

import copy
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple

from shared.errors import ValidationError


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class ResourceSchema:
    """Describes one CRUD collection.

    ``required`` and ``enums`` are checked in declaration order and the first
    violation is reported. ``defaults`` lists every optional column written
    on create together with its fallback value. ``filters`` maps list query
    parameters to column names.
    """

    name: str
    table: str
    required: Tuple[str, ...] = ()
    enums: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    defaults: Mapping[str, Any] = field(default_factory=dict)
    filters: Mapping[str, str] = field(default_factory=dict)
    order_by: str = "created_at"
    ascending: bool = False
    tracks_updated_at: bool = False

    def validate_required(self, body: Mapping[str, Any]) -> None:
        for name in self.required:
            if not body.get(name):
                raise ValidationError(f"{name} is required")

    def validate_enums(self, body: Mapping[str, Any]) -> None:
        for name, allowed in self.enums.items():
            value = body.get(name)
            if value and value not in allowed:
                raise ValidationError(f"{name} must be one of: {', '.join(allowed)}")

    def validate_create(self, body: Mapping[str, Any]) -> None:
        self.validate_required(body)
        self.validate_enums(body)

    def validate_update(self, body: Mapping[str, Any]) -> None:
        self.validate_enums(body)

    def build_row(self, body: Mapping[str, Any], now: Optional[int] = None) -> Dict[str, Any]:
        """Assemble the row to insert from a validated create body.

        Keys outside the schema are dropped.
        """
        now = now_ms() if now is None else now

        row: Dict[str, Any] = {"id": _value_or(body, "id", lambda: str(uuid.uuid4()))}
        for name in self.required:
            row[name] = body[name]
        for name, default in self.defaults.items():
            row[name] = _value_or(body, name, lambda default=default: copy.deepcopy(default))
        row["created_at"] = _value_or(body, "created_at", lambda: now)
        if self.tracks_updated_at:
            row["updated_at"] = now
        return row

    def build_changes(self, body: Mapping[str, Any], now: Optional[int] = None) -> Dict[str, Any]:
        """Partial update payload: the body as sent, plus a fresh update stamp."""
        changes = dict(body)
        if self.tracks_updated_at:
            changes["updated_at"] = now_ms() if now is None else now
        return changes

    def list_filters(self, query: Mapping[str, str]) -> Dict[str, str]:
        """Translate list query parameters into column equality filters."""
        return {
            column: query[param]
            for param, column in self.filters.items()
            if query.get(param)
        }


def _value_or(body: Mapping[str, Any], name: str, fallback):
    value = body.get(name)
    return fallback() if value is None else value
