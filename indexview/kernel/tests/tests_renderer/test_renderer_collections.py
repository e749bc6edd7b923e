"""
IndexView Renderer -- Collection Tests

Lists and records in both layouts:
  inline=True   → <ul> with one <li> per child (records: "key: value")
  inline=False  → one <span> with children separated by ", "
                  empty collections become "<Empty List>" / "<Empty Object>"

Records that are not plain dicts (subclasses, class instances) render as
"<TypeName>" and are never descended into.
"""

from collections import OrderedDict

import pytest
from bs4 import NavigableString, Tag

from indexview.kernel.context import provide
from indexview.kernel.host import Component, ViewContainer
from indexview.kernel.markup import h
from indexview.kernel.renderer import render_literal
from indexview.kernel.types import RenderContext, ViewSettings
from indexview.kernel.values import DataArray


async def render(value, app, index, settings=None, inline=False, depth=0):
    component = Component()
    component.load()
    context = RenderContext(
        app=app,
        component=component,
        index=index,
        settings=settings or ViewSettings(),
        container=ViewContainer(),
    )
    with provide(context):
        node = render_literal(value, "notes/today.md", inline=inline, depth=depth)
    holder = h("div")
    holder.append(node)
    await component.settle()
    return holder


def separators(span):
    return [c for c in span.contents if isinstance(c, NavigableString) and c == ", "]


def classes(tag):
    return " ".join(tag.get("class", []))


# ============================================================================
# Lists
# ============================================================================


class TestListBlock:
    """inline=False: flattened, comma separated."""

    @pytest.mark.asyncio
    async def test_empty_list_placeholder(self, app, index):
        holder = await render([], app, index)
        assert holder.get_text() == "<Empty List>"
        assert holder.find("span") is None

    @pytest.mark.asyncio
    async def test_single_item_has_no_separator(self, app, index):
        holder = await render([7], app, index)
        span = holder.contents[0]
        assert span.name == "span"
        assert separators(span) == []
        assert span.get_text() == "7"

    @pytest.mark.asyncio
    async def test_separator_count(self, app, index):
        holder = await render([1, 2, 3, 4, 5], app, index)
        span = holder.contents[0]
        assert len(separators(span)) == 4
        assert len([c for c in span.contents if c.get_text() != ", "]) == 5

    @pytest.mark.asyncio
    async def test_span_class(self, app, index):
        holder = await render([1, 2], app, index)
        assert classes(holder.contents[0]) == "dataview dataview-result-list-span"

    @pytest.mark.asyncio
    async def test_mixed_list_with_null(self, app, index):
        holder = await render([1, "a", None], app, index, settings=ViewSettings(render_null_as="–"))
        assert holder.get_text() == "1, a, –"
        span = holder.contents[0]
        assert len(separators(span)) == 2
        # Strings and nulls are markdown spans, not raw text
        assert [c.name for c in span.contents if isinstance(c, Tag)] == ["span", "span"]

    @pytest.mark.asyncio
    async def test_not_nested_as_list(self, app, index):
        holder = await render([[1, 2], [3]], app, index)
        assert holder.find("ul") is None
        assert holder.get_text() == "1, 2, 3"

    @pytest.mark.asyncio
    async def test_tuple_treated_as_list(self, app, index):
        holder = await render((1, 2), app, index)
        assert holder.get_text() == "1, 2"

    @pytest.mark.asyncio
    async def test_data_array_treated_as_list(self, app, index):
        holder = await render(DataArray([1, 2, 3]), app, index)
        assert holder.get_text() == "1, 2, 3"


class TestListInline:
    """inline=True: a <ul> of <li> children."""

    @pytest.mark.asyncio
    async def test_one_li_per_item(self, app, index):
        holder = await render([1, 2, 3], app, index, inline=True)
        ul = holder.find("ul")
        assert classes(ul) == "dataview dataview-ul dataview-result-list-ul"
        items = [c for c in ul.contents if isinstance(c, Tag)]
        assert [li.name for li in items] == ["li", "li", "li"]
        assert [li.get_text() for li in items] == ["1", "2", "3"]
        assert classes(items[0]) == "dataview-result-list-li"

    @pytest.mark.asyncio
    async def test_empty_inline_list_is_empty_ul(self, app, index):
        holder = await render([], app, index, inline=True)
        ul = holder.find("ul")
        assert ul is not None
        assert ul.contents == []

    @pytest.mark.asyncio
    async def test_nested_inline_lists(self, app, index):
        holder = await render([[1, 2]], app, index, inline=True)
        assert len(holder.find_all("ul")) == 2


# ============================================================================
# Records
# ============================================================================


class TestRecordBlock:
    @pytest.mark.asyncio
    async def test_empty_record_placeholder(self, app, index):
        holder = await render({}, app, index)
        assert holder.get_text() == "<Empty Object>"

    @pytest.mark.asyncio
    async def test_entries_key_value(self, app, index):
        holder = await render({"rating": 5, "done": True}, app, index)
        assert holder.get_text() == "rating: 5, done: true"

    @pytest.mark.asyncio
    async def test_separator_count(self, app, index):
        holder = await render({"a": 1, "b": 2, "c": 3}, app, index)
        span = holder.contents[0]
        assert classes(span) == "dataview dataview-result-object-span"
        assert len(separators(span)) == 2

    @pytest.mark.asyncio
    async def test_non_string_keys_stringified(self, app, index):
        holder = await render({1: "x"}, app, index)
        assert holder.get_text() == "1: x"


class TestRecordInline:
    @pytest.mark.asyncio
    async def test_one_li_per_entry(self, app, index):
        holder = await render({"a": 1, "b": 2}, app, index, inline=True)
        ul = holder.find("ul")
        assert classes(ul) == "dataview dataview-ul dataview-result-object-ul"
        items = ul.find_all("li")
        assert [li.get_text() for li in items] == ["a: 1", "b: 2"]
        assert classes(items[0]) == "dataview dataview-li dataview-result-object-li"


class TestNonPlainRecords:
    """Anything that isn't an exact dict is shown by type name only."""

    @pytest.mark.asyncio
    async def test_class_instance(self, app, index):
        class Task:
            def __init__(self):
                self.text = "write tests"

        holder = await render(Task(), app, index)
        assert holder.get_text() == "<Task>"

    @pytest.mark.asyncio
    async def test_dict_subclass(self, app, index):
        holder = await render(OrderedDict(a=1), app, index)
        assert holder.get_text() == "<OrderedDict>"

    @pytest.mark.asyncio
    async def test_nested_plain_mapping_not_visited(self, app, index):
        class Exploding(dict):
            def items(self):
                raise AssertionError("must not descend into non-plain records")

        holder = await render(Exploding(inner={"deep": 1}), app, index)
        assert holder.get_text() == "<Exploding>"

    @pytest.mark.asyncio
    async def test_self_referential_instance(self, app, index):
        class Node:
            pass

        node = Node()
        node.me = node
        holder = await render(node, app, index)
        assert holder.get_text() == "<Node>"

    @pytest.mark.asyncio
    async def test_instance_inside_plain_record(self, app, index):
        class Page:
            pass

        holder = await render({"page": Page()}, app, index)
        assert holder.get_text() == "page: <Page>"
