"""Resolve graph nodes and connections back to their areas declarations."""

import bisect
import re
from dataclasses import dataclass

from src.logic_map.graph import Connection, ConnectionType, Node

# Names must not continue past the match, e.g. "Foo" must not match "Foo.Bar"
IDENTIFIER_END = r"(?![\w.])"

ANCHOR_DECLARATION = re.compile(r"^anchor[ \t]+", re.MULTILINE)
ANCHOR_NAME = re.compile(r" *([\w.]+)")


@dataclass(frozen=True)
class SourceLocation:
    """Line and character location inside a text file, both 0-based."""

    line: int
    character: int

    @classmethod
    def from_offset(cls, source: str, offset: int) -> "SourceLocation":
        """
        Convert an offset into the source to a location.

        ``character`` skips the indentation at the offset, falling back to 0
        when nothing but spaces follows.
        """
        line = source.count("\n", 0, offset)
        remainder = source[offset:]
        content = remainder.lstrip(" ")
        character = len(remainder) - len(content) if content else 0
        return cls(line=line, character=character)


def node_source_location(node: Node, areas: str) -> SourceLocation | None:
    """Locate the anchor declaration of a node, or None if there is none."""
    pattern = re.compile(rf"^anchor[ \t]+{re.escape(node.name)}{IDENTIFIER_END}", re.MULTILINE)
    match = pattern.search(areas)
    if match is None:
        return None
    return SourceLocation.from_offset(areas, match.start())


def connection_source_location(
    connection: Connection,
    areas: str,
    inverse: bool = False,
) -> SourceLocation | None:
    """
    Locate the declaration of a connection.

    Args:
        connection: Connection to look up
        areas: Areas text the graph was built from
        inverse: For bidirectional connections, return the declaration
            leading from ``end`` to ``start`` instead of ``start`` to ``end``.
            Unidirectional connections only have one declaration, which is
            returned regardless.

    Returns:
        Location of the entry under its anchor, or None if not found
    """
    if connection.unidirectional:
        # The surviving declaration leads from start to end; a reverse entry
        # may still exist in the text after being pruned
        directions = [(connection.start, connection.end), (connection.end, connection.start)]
    elif inverse:
        directions = [(connection.end, connection.start)]
    else:
        directions = [(connection.start, connection.end)]

    anchors = _anchor_declarations(areas)
    for source, target in directions:
        offset = _find_entry(areas, anchors, connection.kind, source, target)
        if offset is not None:
            return SourceLocation.from_offset(areas, offset)

    return None


def _anchor_declarations(areas: str) -> tuple[list[int], list[str]]:
    """Collect the offsets and names of all anchor declarations."""
    offsets: list[int] = []
    names: list[str] = []
    for match in ANCHOR_DECLARATION.finditer(areas):
        name = ANCHOR_NAME.match(areas, match.end())
        offsets.append(match.start())
        names.append(name.group(1) if name else "")
    return offsets, names


def _find_entry(
    areas: str,
    anchors: tuple[list[int], list[str]],
    kind: ConnectionType,
    source: str,
    target: str,
) -> int | None:
    if kind is ConnectionType.BRANCH:
        keyword = "conn"
    elif kind is ConnectionType.LEAF:
        keyword = "(?:pickup|quest)"
    else:
        raise ValueError(f"Unhandled connection type: {kind}")

    pattern = re.compile(
        rf"^[ \t]*{keyword}[ \t]+{re.escape(target)}{IDENTIFIER_END}", re.MULTILINE
    )
    offsets, names = anchors
    for match in pattern.finditer(areas):
        # Nearest anchor declared before the entry owns it
        owner = bisect.bisect_right(offsets, match.start()) - 1
        if owner >= 0 and names[owner] == source:
            return match.start()

    return None
