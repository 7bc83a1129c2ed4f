"""In-memory JSON tree: typed items, arrays and objects, and their constructors."""

from __future__ import annotations

import copy
import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from enum import IntEnum


class JsonType(IntEnum):
    """Kinds of JSON value an item can hold."""

    FALSE = 0
    TRUE = 1
    NULL = 2
    NUMBER = 3
    STRING = 4
    ARRAY = 5
    OBJECT = 6


def _names_match(item_name: str | None, name: str | None) -> bool:
    """Case-insensitive name comparison; a missing name only matches a missing name."""
    if item_name is None or name is None:
        return item_name is None and name is None
    return item_name.lower() == name.lower()


@dataclass(eq=False)
class JsonItem:
    """One node of a JSON tree.

    Arrays and objects keep their members in ``children``; object members
    carry their key in ``name``. An item created as a reference shares its
    children and value with the item it refers to.
    """

    type: JsonType = JsonType.NULL
    children: list[JsonItem] = field(default_factory=list)
    value_string: str | None = None
    value_int: int = 0
    value_double: float = 0.0
    name: str | None = None
    is_reference: bool = False

    def __len__(self) -> int:
        return len(self.children)

    def __iter__(self) -> Iterator[JsonItem]:
        return iter(self.children)

    def _position(self, which: int) -> int | None:
        # Indices below zero select the first member, as a forward walk would.
        if not self.children or which >= len(self.children):
            return None
        return max(which, 0)

    def _position_of(self, name: str | None) -> int | None:
        return next(
            (pos for pos, child in enumerate(self.children) if _names_match(child.name, name)),
            None,
        )

    def get_array_item(self, index: int) -> JsonItem | None:
        """Return the member at ``index``, or None when there is none."""
        pos = self._position(index)
        return None if pos is None else self.children[pos]

    def get_object_item(self, name: str) -> JsonItem | None:
        """Return the first member whose key matches ``name`` ignoring case."""
        pos = self._position_of(name)
        return None if pos is None else self.children[pos]

    def add_item_to_array(self, item: JsonItem | None) -> None:
        """Append ``item``; a missing item is ignored."""
        if item is None:
            return
        self.children.append(item)

    def add_item_to_object(self, name: str, item: JsonItem | None) -> None:
        """Append ``item`` under the key ``name``."""
        if item is None:
            return
        item.name = name
        self.add_item_to_array(item)

    @staticmethod
    def _reference_to(item: JsonItem) -> JsonItem:
        ref = copy.copy(item)
        ref.name = None
        ref.is_reference = True
        return ref

    def add_reference_to_array(self, item: JsonItem) -> None:
        """Append a reference sharing ``item``'s contents without moving it."""
        self.add_item_to_array(self._reference_to(item))

    def add_reference_to_object(self, name: str, item: JsonItem) -> None:
        """Append a reference to ``item`` under the key ``name``."""
        self.add_item_to_object(name, self._reference_to(item))

    def detach_from_array(self, which: int) -> JsonItem | None:
        """Remove and return the member at ``which``, or None."""
        pos = self._position(which)
        return None if pos is None else self.children.pop(pos)

    def delete_from_array(self, which: int) -> None:
        """Remove the member at ``which`` if there is one."""
        self.detach_from_array(which)

    def detach_from_object(self, name: str) -> JsonItem | None:
        """Remove and return the member keyed ``name`` (ignoring case), or None."""
        pos = self._position_of(name)
        return None if pos is None else self.children.pop(pos)

    def delete_from_object(self, name: str) -> None:
        """Remove the member keyed ``name`` if there is one."""
        self.detach_from_object(name)

    def replace_in_array(self, which: int, new_item: JsonItem) -> None:
        """Put ``new_item`` in place of the member at ``which``; no-op if absent."""
        pos = self._position(which)
        if pos is not None:
            self.children[pos] = new_item

    def replace_in_object(self, name: str, new_item: JsonItem) -> None:
        """Put ``new_item`` in place of the member keyed ``name``; no-op if absent."""
        pos = self._position_of(name)
        if pos is not None:
            new_item.name = name
            self.children[pos] = new_item

    def duplicate(self, recurse: bool) -> JsonItem:
        """Return a fresh copy; members are copied too when ``recurse`` is true."""
        return JsonItem(
            type=self.type,
            children=[child.duplicate(True) for child in self.children] if recurse else [],
            value_string=self.value_string,
            value_int=self.value_int,
            value_double=self.value_double,
            name=self.name,
            is_reference=False,
        )


def create_null() -> JsonItem:
    return JsonItem(type=JsonType.NULL)


def create_true() -> JsonItem:
    return JsonItem(type=JsonType.TRUE)


def create_false() -> JsonItem:
    return JsonItem(type=JsonType.FALSE)


def create_bool(value: object) -> JsonItem:
    return JsonItem(type=JsonType.TRUE if value else JsonType.FALSE)


def create_number(value: float) -> JsonItem:
    """Number item; the integer view truncates toward zero."""
    number = float(value)
    return JsonItem(
        type=JsonType.NUMBER,
        value_double=number,
        value_int=int(number) if math.isfinite(number) else 0,
    )


def create_string(value: str) -> JsonItem:
    return JsonItem(type=JsonType.STRING, value_string=value)


def create_array() -> JsonItem:
    return JsonItem(type=JsonType.ARRAY)


def create_object() -> JsonItem:
    return JsonItem(type=JsonType.OBJECT)


def create_int_array(numbers: Iterable[int]) -> JsonItem:
    return JsonItem(type=JsonType.ARRAY, children=[create_number(n) for n in numbers])


def create_double_array(numbers: Iterable[float]) -> JsonItem:
    return JsonItem(type=JsonType.ARRAY, children=[create_number(n) for n in numbers])


def create_string_array(strings: Iterable[str]) -> JsonItem:
    return JsonItem(type=JsonType.ARRAY, children=[create_string(s) for s in strings])