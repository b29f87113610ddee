"""
Projection parsing for collection queries.

A projection is the hosted backend's ``select`` grammar::

    id, property_name, properties (property_name, total_sqm), owner:profiles(first_name)

Items are separated by commas; ``*`` selects every column; ``alias:column``
renames a column; ``[alias:]relation(items)`` embeds a related collection and
may nest. Whitespace and newlines are insignificant.
"""

from dataclasses import dataclass
from typing import Union

from .exceptions import ProjectionError


@dataclass(frozen=True)
class Column:
    """A plain column, optionally renamed in the result row."""

    name: str
    alias: str | None = None

    @property
    def output_name(self) -> str:
        return self.alias or self.name

    def to_select(self) -> str:
        return f"{self.alias}:{self.name}" if self.alias else self.name


@dataclass(frozen=True)
class Star:
    """Every column of the collection."""

    def to_select(self) -> str:
        return "*"


@dataclass(frozen=True)
class Embed:
    """A related collection embedded under the row."""

    relation: str
    projection: "Projection"
    alias: str | None = None

    @property
    def output_name(self) -> str:
        return self.alias or self.relation

    def to_select(self) -> str:
        prefix = f"{self.alias}:" if self.alias else ""
        return f"{prefix}{self.relation}({self.projection.to_select()})"


ProjectionItem = Union[Column, Star, Embed]


@dataclass(frozen=True)
class Projection:
    """Parsed projection tree."""

    items: tuple[ProjectionItem, ...]

    @property
    def selects_all(self) -> bool:
        return any(isinstance(item, Star) for item in self.items)

    @property
    def columns(self) -> tuple[Column, ...]:
        return tuple(item for item in self.items if isinstance(item, Column))

    @property
    def embeds(self) -> tuple[Embed, ...]:
        return tuple(item for item in self.items if isinstance(item, Embed))

    def to_select(self) -> str:
        """Canonical compact rendering accepted by the REST backend."""
        return ",".join(item.to_select() for item in self.items)

    def __str__(self) -> str:
        return self.to_select()


def _split_top_level(text: str, source: str) -> list[str]:
    """Split on commas that are not inside parentheses."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for char in text:
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth < 0:
                raise ProjectionError("Unbalanced ')' in projection", source)
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    if depth != 0:
        raise ProjectionError("Unbalanced '(' in projection", source)
    parts.append("".join(current))
    return parts


def _parse_name(token: str, source: str) -> tuple[str, str | None]:
    """Parse ``alias:name`` / ``name`` into (name, alias)."""
    alias = None
    if ":" in token:
        alias, token = token.split(":", 1)
        if not alias.isidentifier():
            raise ProjectionError(f"Invalid alias '{alias}'", source)
    # casts (``column::text``) and fk hints (``table!fk``) are not supported
    if not token.isidentifier():
        raise ProjectionError(f"Invalid field name '{token}'", source)
    return token, alias


def _parse_items(text: str, source: str) -> Projection:
    items: list[ProjectionItem] = []
    for raw in _split_top_level(text, source):
        if not raw:
            raise ProjectionError("Empty item in projection", source)
        if raw == "*":
            items.append(Star())
            continue
        if "(" in raw:
            head, _, rest = raw.partition("(")
            if not rest.endswith(")"):
                raise ProjectionError(
                    f"Unexpected text after embedded relation '{head}'", source
                )
            body = rest[:-1]
            if not body:
                raise ProjectionError(
                    f"Embedded relation '{head}' selects nothing", source
                )
            relation, alias = _parse_name(head, source)
            items.append(Embed(relation, _parse_items(body, source), alias))
            continue
        name, alias = _parse_name(raw, source)
        items.append(Column(name, alias))
    return Projection(tuple(items))


def parse_projection(text: str) -> Projection:
    """
    Parse a projection string.

    Args:
        text: Projection in select grammar

    Returns:
        Immutable projection tree

    Raises:
        ProjectionError: If the projection is malformed
    """
    compact = "".join(text.split())
    if not compact:
        raise ProjectionError("Projection is empty", text)
    return _parse_items(compact, text)
