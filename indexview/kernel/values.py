"""
IndexView Kernel — Value Model

The closed set of runtime value kinds the renderer understands, plus the
value types the index hands out (Link, DataArray) and an in-memory index.

classify() is total: every Python object maps to exactly one ValueKind,
and anything it does not recognise maps to ValueKind.UNKNOWN.
Order matters: bool before number, Link/Tag before the generic
callable/record checks.
"""

from __future__ import annotations

import datetime
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Iterable, Iterator

from bs4 import Tag

from indexview.kernel.types import REFRESH_EVENT


class ValueKind(Enum):
    NULL = "null"
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    DURATION = "duration"
    LINK = "link"
    HTML = "html"
    FUNCTION = "function"
    ARRAY = "array"
    OBJECT = "object"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Link
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Link:
    """A link to a file, a heading inside a file, or a block inside a file."""

    path: str
    display: str | None = None
    subpath: str | None = None
    embed: bool = False
    type: str = "file"  # "file" | "header" | "block"

    @classmethod
    def file(cls, path: str, embed: bool = False, display: str | None = None) -> Link:
        return cls(path=path, display=display, embed=embed, type="file")

    @classmethod
    def header(cls, path: str, header: str, embed: bool = False, display: str | None = None) -> Link:
        return cls(path=path, display=display, subpath=header, embed=embed, type="header")

    @classmethod
    def block(cls, path: str, block_id: str, embed: bool = False, display: str | None = None) -> Link:
        return cls(path=path, display=display, subpath=block_id, embed=embed, type="block")

    def obsidian_link(self) -> str:
        """The link target as written inside [[ ]]."""
        if self.type == "header":
            return f"{self.path}#{self.subpath}"
        if self.type == "block":
            return f"{self.path}#^{self.subpath}"
        return self.path

    def markdown(self) -> str:
        """Wiki-link markdown, e.g. `[[Note#Heading|Shown]]` or `![[image.png]]`."""
        result = ("!" if self.embed else "") + "[[" + self.obsidian_link()
        if self.display:
            result += "|" + self.display
        elif self.type == "header" and self.subpath:
            result += "|" + self.subpath
        return result + "]]"

    def __str__(self) -> str:
        return self.markdown()


# ---------------------------------------------------------------------------
# DataArray
# ---------------------------------------------------------------------------


class DataArray:
    """Read-only sequence wrapper the query layer returns for result rows."""

    def __init__(self, values: Iterable[Any] = ()) -> None:
        self.values: list[Any] = list(values)

    @staticmethod
    def is_data_array(value: Any) -> bool:
        return isinstance(value, DataArray)

    def map(self, fn: Callable[[Any], Any]) -> DataArray:
        return DataArray(fn(v) for v in self.values)

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.values)

    def __getitem__(self, index: int) -> Any:
        return self.values[index]

    def __repr__(self) -> str:
        return f"DataArray({self.values!r})"


# ---------------------------------------------------------------------------
# Predicates
# ---------------------------------------------------------------------------


def is_null(value: Any) -> bool:
    return value is None


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_boolean(value: Any) -> bool:
    return isinstance(value, bool)


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def is_date(value: Any) -> bool:
    return isinstance(value, datetime.date)


def is_duration(value: Any) -> bool:
    return isinstance(value, datetime.timedelta)


def is_link(value: Any) -> bool:
    return isinstance(value, Link)


def is_html(value: Any) -> bool:
    return isinstance(value, Tag)


def is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple)) or DataArray.is_data_array(value)


def is_object(value: Any) -> bool:
    """Mappings, and instances of ordinary classes (anything with a __dict__)."""
    if isinstance(value, Mapping):
        return True
    return hasattr(value, "__dict__") and not isinstance(value, type)


def is_function(value: Any) -> bool:
    return callable(value) and not isinstance(value, Mapping)


def classify(value: Any) -> ValueKind:
    """Map a runtime value to its kind. Never raises."""
    if is_null(value):
        return ValueKind.NULL
    if is_string(value):
        return ValueKind.STRING
    if is_boolean(value):
        return ValueKind.BOOLEAN
    if is_number(value):
        return ValueKind.NUMBER
    if is_date(value):
        return ValueKind.DATE
    if is_duration(value):
        return ValueKind.DURATION
    if is_link(value):
        return ValueKind.LINK
    if is_html(value):
        return ValueKind.HTML
    if is_array(value):
        return ValueKind.ARRAY
    if is_function(value):
        return ValueKind.FUNCTION
    if is_object(value):
        return ValueKind.OBJECT
    return ValueKind.UNKNOWN


def type_name(value: Any) -> str:
    return type(value).__name__


def is_plain_record(value: Any) -> bool:
    """Only an exact dict counts; subclasses and class instances carry identity."""
    return type(value) is dict


def record_entries(value: Any) -> list[tuple[str, Any]]:
    """Key/value pairs of a plain record, keys stringified, insertion order kept."""
    return [(str(k), v) for k, v in value.items()]


# ---------------------------------------------------------------------------
# In-memory index
# ---------------------------------------------------------------------------


class MemoryIndex:
    """
    Minimal index: a dict of pages plus a revision counter.
    Every mutation bumps the revision; `touch()` also announces it on the bus.
    """

    def __init__(self, workspace: Any | None = None) -> None:
        self.pages: dict[str, Any] = {}
        self._revision = 0
        self._workspace = workspace

    @property
    def revision(self) -> int:
        return self._revision

    def set(self, path: str, page: Any) -> None:
        self.pages[path] = page
        self._revision += 1

    def delete(self, path: str) -> None:
        if self.pages.pop(path, None) is not None:
            self._revision += 1

    def touch(self) -> int:
        """Advance the revision and fire REFRESH_EVENT (when attached to a bus)."""
        self._revision += 1
        if self._workspace is not None:
            self._workspace.trigger(REFRESH_EVENT)
        return self._revision

    def refresh(self) -> None:
        """Fire REFRESH_EVENT without changing data."""
        if self._workspace is not None:
            self._workspace.trigger(REFRESH_EVENT)
