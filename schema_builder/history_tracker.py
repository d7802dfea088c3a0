"""
Bounded edit history for the schema builder.

Every observed change of the live field tree is stored as an immutable,
deep-copied snapshot. The newest entry comes first and represents the
current state; older entries can be restored.
"""

import logging
import uuid
from collections import deque
from datetime import datetime
from typing import Dict, Any, List, Optional, Tuple

from deepdiff import DeepDiff
from pydantic import BaseModel, ConfigDict

from schema_builder.exceptions import HistoryEntryNotFound
from schema_builder.field_model import SchemaField, FieldSummary, clone_fields, summarize_fields

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 20
DEFAULT_ACTION_LABEL = "Schema modified"


class HistoryEntry(BaseModel):
    """One immutable snapshot of the field tree."""
    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: datetime
    fields: List[SchemaField]
    action: str

    @property
    def summary(self) -> FieldSummary:
        return summarize_fields(self.fields)


def _new_entry_id(timestamp: datetime) -> str:
    return f"{int(timestamp.timestamp() * 1000)}_{uuid.uuid4().hex[:9]}"


def _copy_entry(entry: HistoryEntry) -> HistoryEntry:
    # Frozen only guards attribute assignment; the field list is still mutable
    return entry.model_copy(update={'fields': clone_fields(entry.fields)})


class HistoryTracker:
    """
    Fixed-capacity, most-recent-first log of field tree snapshots.

    Snapshots are deep copies taken on insert and handed out as deep copies
    on listing and restore, so no edit outside the tracker alters a recorded entry.
    """

    def __init__(self, max_entries: int = DEFAULT_MAX_ENTRIES,
                 action_label: str = DEFAULT_ACTION_LABEL):
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.max_entries = max_entries
        self.action_label = action_label
        self._entries: deque = deque(maxlen=max_entries)

    def __len__(self) -> int:
        return len(self._entries)

    def observe(self, current_fields: List[SchemaField]) -> Optional[HistoryEntry]:
        """
        Record the current tree.

        An empty tree is not recorded, so clearing every field is not itself
        a restorable point.

        Returns:
            The new entry, or None when nothing was recorded
        """
        if not current_fields:
            return None

        timestamp = datetime.now()
        entry = HistoryEntry(
            id=_new_entry_id(timestamp),
            timestamp=timestamp,
            fields=clone_fields(current_fields),
            action=self.action_label
        )
        # appendleft on a bounded deque drops the oldest entry from the right
        self._entries.appendleft(entry)
        logger.debug(f"History entry recorded: {entry.id} ({len(self._entries)}/{self.max_entries})")
        return _copy_entry(entry)

    def list_entries(self) -> List[HistoryEntry]:
        """Return copies of the entries, most recent first."""
        return [_copy_entry(entry) for entry in self._entries]

    def _find(self, entry_id: str) -> HistoryEntry:
        for entry in self._entries:
            if entry.id == entry_id:
                return entry
        raise HistoryEntryNotFound(entry_id)

    def get_entry(self, entry_id: str) -> HistoryEntry:
        """Return a copy of one entry; the recorded snapshot stays untouched."""
        return _copy_entry(self._find(entry_id))

    def is_current(self, entry_id: str) -> bool:
        """The head entry mirrors the live tree and is not offered for restore."""
        return bool(self._entries) and self._entries[0].id == entry_id

    def restore(self, entry_id: str) -> List[SchemaField]:
        """
        Return a deep copy of the fields recorded in an entry.

        The log itself is left untouched.

        Raises:
            HistoryEntryNotFound: If the entry is not in the retained window
        """
        entry = self._find(entry_id)
        logger.info(f"Restoring history entry {entry_id} from {entry.timestamp.isoformat()}")
        return clone_fields(entry.fields)

    def clear(self) -> None:
        self._entries.clear()

    def diff_from(self, entry_id: str, current_fields: List[SchemaField]) -> List[str]:
        """
        Describe how the live tree differs from a recorded entry.

        Field ids are ignored; fields are matched by name at each level.

        Args:
            entry_id: Id of the historical entry (the "before" side)
            current_fields: Live field tree (the "after" side)

        Returns:
            Human-readable change lines, empty when the trees match
        """
        entry = self._find(entry_id)
        return describe_changes(entry.fields, current_fields)


def _keyed(fields: List[SchemaField]) -> Dict[str, Any]:
    keyed: Dict[str, Any] = {}
    for field in fields:
        keyed[field.name] = {
            'type': field.type,
            'required': field.required,
            'value': field.value,
            'children': _keyed(field.children or [])
        }
    return keyed


def _split_path(path: List[Any]) -> Tuple[str, Optional[str]]:
    """Turn a DeepDiff path over _keyed() output into (dotted field name, attribute)."""
    names = []
    attribute = None
    index = 0
    while index < len(path):
        names.append(str(path[index]))
        if index + 1 >= len(path):
            break
        if path[index + 1] == 'children':
            index += 2
            continue
        attribute = str(path[index + 1])
        break
    return '.'.join(names), attribute


def describe_changes(before: List[SchemaField], after: List[SchemaField]) -> List[str]:
    """
    Compare two field trees with DeepDiff and summarize the differences.
    """
    diff = DeepDiff(_keyed(before), _keyed(after), view='tree')
    changes = []

    for level in diff.get('dictionary_item_added', []):
        name, _ = _split_path(level.path(output_format='list'))
        changes.append(f"Added field '{name}'")

    for level in diff.get('dictionary_item_removed', []):
        name, _ = _split_path(level.path(output_format='list'))
        changes.append(f"Removed field '{name}'")

    for report_type in ('values_changed', 'type_changes'):
        for level in diff.get(report_type, []):
            name, attribute = _split_path(level.path(output_format='list'))
            changes.append(f"Changed {attribute} of '{name}': {level.t1!r} -> {level.t2!r}")

    return changes


def format_relative_time(timestamp: datetime, now: Optional[datetime] = None) -> str:
    """Format a timestamp relative to ``now``, e.g. "Just now" or "5m ago"."""
    if now is None:
        now = datetime.now()

    seconds = (now - timestamp).total_seconds()
    minutes = int(seconds // 60)
    hours = int(seconds // 3600)
    days = int(seconds // 86400)

    if minutes < 1:
        return "Just now"
    if minutes < 60:
        return f"{minutes}m ago"
    if hours < 24:
        return f"{hours}h ago"
    return f"{days}d ago"
