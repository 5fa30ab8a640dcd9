from __future__ import annotations

from bs4 import BeautifulSoup, Tag


def xpath_literal(value: str) -> str:
    """Quotes ``value`` as an XPath 1.0 string literal."""

    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'
    parts = value.split("'")
    pieces = ", \"'\", ".join(f"'{part}'" for part in parts)
    return f"concat({pieces})"


class StructuralPathGenerator:
    """Computes the canonical absolute path of an element.

    Each level is ``tag[@id='value']`` (and the walk stops there, an id is
    taken as globally unique), ``tag`` when the element is the only child of
    its parent with that tag, or ``tag[k]`` with ``k`` the 1-based position
    among same-tag siblings.
    """

    id_attribute = "id"

    def generate(self, node: Tag) -> str:
        segments: list[str] = []
        current = node
        while isinstance(current, Tag) and not isinstance(current, BeautifulSoup):
            identifier = current.get(self.id_attribute)
            if isinstance(identifier, str) and identifier:
                segments.append(f"{current.name}[@{self.id_attribute}={xpath_literal(identifier)}]")
                break
            segments.append(self._positional_segment(current))
            current = current.parent
        return "".join(f"/{segment}" for segment in reversed(segments))

    def generate_all(self, document: BeautifulSoup) -> list[tuple[Tag, str]]:
        return [(node, self.generate(node)) for node in document.find_all(True)]

    @staticmethod
    def _positional_segment(node: Tag) -> str:
        parent = node.parent
        if parent is None:
            return node.name
        same_tag = parent.find_all(node.name, recursive=False)
        if len(same_tag) <= 1:
            return node.name
        position = next(index for index, child in enumerate(same_tag, start=1) if child is node)
        return f"{node.name}[{position}]"
