"""
Minimal HTML markup tree.

Renderers build `Element` trees with `h()`; the caller serializes with
`to_html()`. Text children are always escaped, so card names and cell values
can be passed through as-is. `Raw` marks trusted markup such as entities.
"""

import html
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

VOID_TAGS = frozenset({'img', 'br', 'hr', 'meta'})


@dataclass(frozen=True)
class Raw:
    """Trusted markup inserted without escaping."""

    markup: str


Child = Union['Element', Raw, str]


@dataclass(frozen=True)
class Element:
    tag: str
    attrs: Tuple[Tuple[str, Any], ...] = ()
    children: Tuple[Child, ...] = field(default_factory=tuple)

    def get(self, name: str, default: Any = None) -> Any:
        for key, value in self.attrs:
            if key == name:
                return value
        return default

    def iter(self, tag: Optional[str] = None) -> Iterator['Element']:
        """Depth-first walk over this element and its descendants."""
        if tag is None or self.tag == tag:
            yield self
        for child in self.children:
            if isinstance(child, Element):
                yield from child.iter(tag)

    def find_all(self, tag: str) -> List['Element']:
        return list(self.iter(tag))

    def text(self) -> str:
        """Concatenated unescaped text content."""
        parts = []
        for child in self.children:
            if isinstance(child, Element):
                parts.append(child.text())
            elif isinstance(child, str):
                parts.append(child)
        return "".join(parts)

    def to_html(self) -> str:
        attrs = "".join(
            f' {key}="{html.escape(str(value), quote=True)}"'
            for key, value in self.attrs
            if value is not None
        )
        if self.tag in VOID_TAGS:
            return f"<{self.tag}{attrs}>"
        inner = "".join(_child_html(child) for child in self.children)
        return f"<{self.tag}{attrs}>{inner}</{self.tag}>"


def _child_html(child: Child) -> str:
    if isinstance(child, Element):
        return child.to_html()
    if isinstance(child, Raw):
        return child.markup
    return html.escape(child, quote=False)


def _flatten(children) -> Iterator[Child]:
    for child in children:
        if child is None:
            continue
        if isinstance(child, (list, tuple)) or hasattr(child, '__next__'):
            yield from _flatten(child)
        elif isinstance(child, (Element, Raw)):
            yield child
        else:
            yield str(child)


def h(tag: str, attrs: Optional[Dict[str, Any]] = None, *children: Any) -> Element:
    """
    Build an element. None children are dropped; lists and generators are flattened.

        h('div', {'style': 'color: red;'}, 'Hello ', h('strong', None, 'world'))
    """
    return Element(
        tag=tag,
        attrs=tuple((attrs or {}).items()),
        children=tuple(_flatten(children)),
    )
