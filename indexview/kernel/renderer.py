"""
IndexView Kernel — Value Renderer

render_literal(value, source_path, inline=False, depth=0) → Node

Turns any runtime value into markup nodes. Reads settings and the owning
component from the shared render context, so it must run under a mounted
view (or inside provide()).

Never fails on data: values past max_recursive_render_depth become "...",
class instances become "<TypeName>", and anything unrecognised is dumped as
text. Strings, nulls and links go through the host markdown renderer.
"""

from __future__ import annotations

import datetime
import json
from typing import Any

from bs4 import NavigableString, Tag

from indexview.kernel import values as V
from indexview.kernel.context import use_context
from indexview.kernel.host import embed_html, markdown_span
from indexview.kernel.markup import Node, h
from indexview.kernel.types import (
    EMPTY_LIST_PLACEHOLDER,
    EMPTY_OBJECT_PLACEHOLDER,
    FUNCTION_PLACEHOLDER,
    SEPARATOR,
    TRUNCATION_PLACEHOLDER,
    ViewSettings,
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def render_literal(
    value: Any,
    source_path: str,
    inline: bool = False,
    depth: int = 0,
) -> Node:
    """
    Render an arbitrary value.

    inline=True lays lists and records out as <ul> blocks (one <li> per
    child); inline=False flattens them into a single comma-separated span.
    """
    context = use_context()
    settings = context.settings

    if depth >= settings.max_recursive_render_depth:
        return NavigableString(TRUNCATION_PLACEHOLDER)

    kind = V.classify(value)

    if kind is V.ValueKind.NULL:
        return _markdown(settings.render_null_as, source_path)
    if kind is V.ValueKind.STRING:
        return _markdown(value, source_path)
    if kind is V.ValueKind.NUMBER:
        return NavigableString(str(value))
    if kind is V.ValueKind.BOOLEAN:
        return NavigableString("true" if value else "false")
    if kind is V.ValueKind.DATE:
        return NavigableString(render_minimal_date(value, settings))
    if kind is V.ValueKind.DURATION:
        return NavigableString(render_minimal_duration(value))
    if kind is V.ValueKind.LINK:
        return _markdown(value.markdown(), source_path)
    if kind is V.ValueKind.HTML:
        return embed_html(value)
    if kind is V.ValueKind.FUNCTION:
        return NavigableString(FUNCTION_PLACEHOLDER)
    if kind is V.ValueKind.ARRAY:
        return _render_list(list(value), source_path, inline, depth)
    if kind is V.ValueKind.OBJECT:
        # Don't descend into class instances; they may refer back to themselves.
        if not V.is_plain_record(value):
            return NavigableString(f"<{V.type_name(value)}>")
        return _render_record(V.record_entries(value), source_path, inline, depth)

    return NavigableString(f"<Unrecognized: {_dump(value)}>")


def render_minimal_date(value: datetime.date, settings: ViewSettings) -> str:
    """
    Date-only format for dates and midnight datetimes, date-time format
    otherwise. strftime follows the process LC_TIME locale.
    """
    if isinstance(value, datetime.datetime):
        if value.time() == datetime.time(0, 0):
            return value.strftime(settings.default_date_format)
        return value.strftime(settings.default_datetime_format)
    return value.strftime(settings.default_date_format)


DURATION_UNITS: list[tuple[str, int]] = [
    ("day", 86_400_000),
    ("hour", 3_600_000),
    ("minute", 60_000),
    ("second", 1_000),
    ("millisecond", 1),
]


def render_minimal_duration(value: datetime.timedelta) -> str:
    """Human form with zero units dropped, e.g. "1 day, 2 hours"."""
    total_ms = round(value.total_seconds() * 1000)
    sign = "-" if total_ms < 0 else ""
    remaining = abs(total_ms)

    parts = []
    for unit, size in DURATION_UNITS:
        amount, remaining = divmod(remaining, size)
        if amount:
            parts.append(f"{amount} {unit}{'' if amount == 1 else 's'}")

    if not parts:
        return "0 seconds"
    return sign + ", ".join(parts)


def error_pre(text: str) -> Tag:
    """A code-style error box."""
    return h("pre", {"class": "dataview dataview-error"}, text)


def error_message(message: str) -> Tag:
    """A centered error message in a box."""
    return h(
        "div",
        {"class": "dataview dataview-error-box"},
        h("p", {"class": "dataview dataview-error-message"}, message),
    )


def nothing() -> None:
    """Renders nothing."""
    return None


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


def _render_list(items: list[Any], source_path: str, inline: bool, depth: int) -> Node:
    if inline:
        return h(
            "ul",
            {"class": "dataview dataview-ul dataview-result-list-ul"},
            [
                h("li", {"class": "dataview-result-list-li"}, render_literal(item, source_path, inline, depth + 1))
                for item in items
            ],
        )

    if not items:
        return NavigableString(EMPTY_LIST_PLACEHOLDER)

    children: list[Node] = []
    for i, item in enumerate(items):
        if i > 0:
            children.append(NavigableString(SEPARATOR))
        children.append(render_literal(item, source_path, inline, depth + 1))
    return h("span", {"class": "dataview dataview-result-list-span"}, children)


def _render_record(entries: list[tuple[str, Any]], source_path: str, inline: bool, depth: int) -> Node:
    if inline:
        return h(
            "ul",
            {"class": "dataview dataview-ul dataview-result-object-ul"},
            [
                h(
                    "li",
                    {"class": "dataview dataview-li dataview-result-object-li"},
                    f"{key}: ",
                    render_literal(item, source_path, inline, depth + 1),
                )
                for key, item in entries
            ],
        )

    if not entries:
        return NavigableString(EMPTY_OBJECT_PLACEHOLDER)

    children: list[Node] = []
    for i, (key, item) in enumerate(entries):
        if i > 0:
            children.append(NavigableString(SEPARATOR))
        children.append(NavigableString(f"{key}: "))
        children.append(render_literal(item, source_path, inline, depth + 1))
    return h("span", {"class": "dataview dataview-result-object-span"}, children)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _markdown(content: str, source_path: str) -> Tag:
    return markdown_span(content, source_path)


def _dump(value: Any) -> str:
    try:
        return json.dumps(value, default=repr)
    except (TypeError, ValueError):
        return repr(value)
