"""
Form field table backing the listing-creation wizard.

Single source of truth for every logical field value, whether typed by the
dealer or filled in by a VIN decode. Change notifications are queued and
only delivered to watchers on ``flush()``, the way a UI framework batches
state updates and runs their side effects after the current handler.
"""
from __future__ import annotations

from collections import deque
from typing import Any, Callable, Deque, Dict, Iterator, List, Mapping, Optional, Set, Tuple


FieldWatcher = Callable[[str, Any], None]
Validator = Callable[[str, Any], Optional[str]]


class FormFieldTable(Mapping[str, Any]):
    """Mutable mapping of logical field name -> current value."""

    def __init__(self, initial: Optional[Mapping[str, Any]] = None, validator: Optional[Validator] = None):
        self._values: Dict[str, Any] = dict(initial or {})
        self._dirty: Set[str] = set()
        self._errors: Dict[str, str] = {}
        self._watchers: List[FieldWatcher] = []
        self._pending: Deque[Tuple[str, Any]] = deque()
        self._validator = validator

    # Mapping protocol
    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    @property
    def dirty_fields(self) -> frozenset:
        return frozenset(self._dirty)

    @property
    def errors(self) -> Dict[str, str]:
        return dict(self._errors)

    def watch(self, watcher: FieldWatcher) -> None:
        """Register a callback run for every change delivered by ``flush()``."""
        self._watchers.append(watcher)

    def set_value(self, name: str, value: Any, validate: bool = True, dirty: bool = True) -> None:
        """
        Write a field value.

        Args:
            name: Logical field name
            value: New value
            validate: Run the validator for this field now
            dirty: Mark the field as user-edited. False also clears an
                earlier mark, the value no longer being the user's.
        """
        self._values[name] = value
        if dirty:
            self._dirty.add(name)
        else:
            self._dirty.discard(name)
        if validate:
            self.validate_field(name)
        self._pending.append((name, value))

    def validate_field(self, name: str) -> bool:
        if self._validator is None:
            return True
        message = self._validator(name, self._values.get(name))
        if message:
            self._errors[name] = message
            return False
        self._errors.pop(name, None)
        return True

    def has_pending_updates(self) -> bool:
        return bool(self._pending)

    def flush(self) -> int:
        """
        Deliver queued change notifications to watchers.

        Watchers may set further values; those are delivered in the same
        flush. Returns the number of notifications delivered.
        """
        delivered = 0
        while self._pending:
            name, value = self._pending.popleft()
            for watcher in list(self._watchers):
                watcher(name, value)
            delivered += 1
        return delivered

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._values)
