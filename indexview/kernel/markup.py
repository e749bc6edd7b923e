"""
IndexView Kernel — Markup

The host document is a BeautifulSoup tree. Containers are Tags; renderers
build Tags and strings with h() and append them into a container. Output
goes through bs4's "minimal" formatter, so text is always escaped.

A render function may hand back a single node, a list of nodes (spliced
into the parent in order) or None.
"""

from __future__ import annotations

from typing import Any, Union

import chevron
from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PageElement

Node = Union[Tag, NavigableString]

# Dropped from delegated markup together with everything inside them.
UNSAFE_TAGS: list[str] = ["script", "style", "iframe", "frame", "noscript", "object", "embed", "template"]

URL_ATTRIBUTES: set[str] = {"href", "src", "action", "formaction", "xlink:href"}

# Owns the tree builder every new tag is created with.
DOCUMENT = BeautifulSoup("", "html.parser")


# ---------------------------------------------------------------------------
# Building
# ---------------------------------------------------------------------------


def new_tag(name: str, attrs: dict[str, str] | None = None) -> Tag:
    return DOCUMENT.new_tag(name, attrs=dict(attrs or {}))


def flatten(nodes: Any) -> list[PageElement]:
    """Expand nested lists, drop None, and turn bare strings into text nodes."""
    flat: list[PageElement] = []
    for node in nodes:
        if node is None:
            continue
        if isinstance(node, (list, tuple)):
            flat.extend(flatten(node))
        elif isinstance(node, PageElement):
            flat.append(node)
        else:
            flat.append(NavigableString(node))
    return flat


def h(name: str, attrs: dict[str, str] | None = None, *children: Any) -> Tag:
    """Build a tag; bare strings become text nodes, lists are spliced."""
    tag = new_tag(name, attrs)
    for child in flatten(children):
        tag.append(child)
    return tag


def to_html(node: PageElement) -> str:
    """Serialise a tag or a text node, escaped."""
    if isinstance(node, Tag):
        return node.decode()
    return node.output_ready(formatter="minimal")


# ---------------------------------------------------------------------------
# Delegated HTML
# ---------------------------------------------------------------------------


def strip_unsafe(root: Tag) -> None:
    """Remove active content: unsafe tags, on* handlers, javascript: URLs."""
    for tag in root.find_all(UNSAFE_TAGS):
        if not tag.decomposed:
            tag.decompose()
    for tag in root.find_all(True):
        for name in list(tag.attrs):
            lowered = name.lower()
            if lowered.startswith("on"):
                del tag[name]
            elif lowered in URL_ATTRIBUTES and _is_script_url(tag[name]):
                del tag[name]


def _is_script_url(value: Any) -> bool:
    url = "".join(str(value).split()).lower()
    return url.startswith(("javascript:", "vbscript:", "data:text/html"))


def parse_fragment(html: str) -> list[PageElement]:
    """
    Parse an HTML fragment into detached, sanitised nodes.
    Whitespace-only text between top-level blocks is dropped.
    """
    soup = BeautifulSoup(html, "html.parser")
    strip_unsafe(soup)
    nodes = [node for node in soup.contents if not (isinstance(node, NavigableString) and not node.strip())]
    return [node.extract() for node in nodes]


# ---------------------------------------------------------------------------
# Standalone page
# ---------------------------------------------------------------------------

PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="{{lang}}">
<head>
<meta charset="UTF-8">
<title>{{title}}</title>
</head>
<body>
<div class="dataview-page">{{{body}}}</div>
</body>
</html>
"""


def render_page(container: Tag, title: str = "Dataview", lang: str = "en") -> str:
    """
    Render a container's current contents as a standalone HTML document.
    Title is escaped by the template; body is the already-escaped tree HTML.
    """
    return chevron.render(
        PAGE_TEMPLATE,
        {"title": title, "lang": lang, "body": container.decode_contents()},
    )
