"""Parse areas logic and location tables into a node table."""

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from src.logic_map.settings import Difficulty, LogicSettings

logger = logging.getLogger(__name__)

IDENTIFIER = r"[\w.]+"
NUMBER = r"-?\d+(?:\.\d+)?"

ANCHOR_HEADER = re.compile(
    rf"^anchor\s+(?P<name>{IDENTIFIER})"
    rf"(?:\s+at\s+(?P<x>{NUMBER})\s*,\s*(?P<y>{NUMBER}))?"
    r"\s*:$"
)
ENTRY = re.compile(
    rf"^(?P<keyword>\w+)(?:\s+(?P<target>{IDENTIFIER}))?"
    r"\s*(?P<colon>:)?\s*(?P<requirements>.*)$"
)

# Top-level declarations whose bodies carry no graph information
SKIPPED_BLOCKS = {"requirement", "region"}

# Anchor entries that do not create a connection
FLAG_ENTRIES = {"nospawn", "tprestriction", "refill"}

LOCATION_COLUMNS = ("identifier", "zone", "x", "y", "map_x", "map_y")


class LogicParseError(ValueError):
    """Raised when areas, location or state text cannot be parsed."""

    def __init__(self, message: str, line: int | None = None, source: str = "areas") -> None:
        self.line = line
        self.source = source
        prefix = f"{source} line {line}" if line is not None else source
        super().__init__(f"{prefix}: {message}")


class NodeKind(Enum):
    """The closed set of node variants produced by the parser."""

    ANCHOR = "anchor"
    PICKUP = "pickup"
    QUEST = "quest"
    STATE = "state"


LEAF_ENTRIES = {
    "pickup": NodeKind.PICKUP,
    "quest": NodeKind.QUEST,
    "state": NodeKind.STATE,
}


@dataclass(frozen=True)
class Position:
    """A 2D map coordinate."""

    x: float
    y: float


@dataclass(frozen=True)
class LogicConnection:
    """Outgoing connection of an anchor, by index into the node table."""

    to: int


@dataclass
class LogicNode:
    """Entry of the node table. Only anchors own connections."""

    kind: NodeKind
    identifier: str
    index: int
    position: Position | None = None
    connections: list[LogicConnection] = field(default_factory=list)


@dataclass(frozen=True)
class Location:
    """Row of the location table."""

    identifier: str
    zone: str
    position: Position | None
    map_position: Position | None


@dataclass(frozen=True)
class Logic:
    """Result of parsing: the full node table in index order."""

    nodes: list[LogicNode]


@dataclass(frozen=True)
class _Line:
    number: int
    indent: int
    text: str


@dataclass
class _Entry:
    keyword: str
    target: str
    line: int
    permitted: bool


@dataclass
class _AnchorDeclaration:
    name: str
    position: Position | None
    line: int
    entries: list[_Entry] = field(default_factory=list)


def parse_logic(
    areas: str,
    locations: str,
    states: str,
    settings: LogicSettings,
    validate: bool = False,
) -> Logic:
    """
    Parse areas logic into a node table.

    Args:
        areas: Areas logic text
        locations: Location table (csv)
        states: State table (csv), may be empty
        settings: Settings deciding which requirement alternatives survive
        validate: If True, state entries must appear in the state table

    Returns:
        Logic holding anchors first (declaration order), then leaf nodes
        in order of first reference

    Raises:
        LogicParseError: If any of the inputs is malformed
    """
    location_table = parse_locations(locations)
    state_table = parse_states(states)
    declarations = _AreasParser(areas, settings).parse()
    nodes = _build_node_table(declarations, location_table, state_table, validate)

    logger.debug(
        f"Parsed logic: {len(declarations)} anchors, {len(nodes)} nodes, "
        f"{len(location_table)} locations, {len(state_table)} states"
    )
    return Logic(nodes=nodes)


def parse_locations(locations: str) -> dict[str, Location]:
    """
    Parse the location table.

    Each row is ``identifier, zone, x, y, map_x, map_y``; a header row naming
    exactly these columns is skipped. Coordinates come in pairs and may both
    be left blank.
    """
    table: dict[str, Location] = {}

    for number, row in _table_rows(locations):
        if tuple(row) == LOCATION_COLUMNS:
            continue
        if len(row) != len(LOCATION_COLUMNS):
            raise LogicParseError(
                f"expected {len(LOCATION_COLUMNS)} columns, found {len(row)}",
                number,
                source="locations",
            )

        identifier, zone, x, y, map_x, map_y = row
        if identifier in table:
            raise LogicParseError(f"duplicate location {identifier}", number, source="locations")

        table[identifier] = Location(
            identifier=identifier,
            zone=zone,
            position=_optional_position(x, y, number),
            map_position=_optional_position(map_x, map_y, number),
        )

    return table


def parse_states(states: str) -> set[str]:
    """Parse the state table, returning the known state identifiers."""
    return {row[0] for _, row in _table_rows(states)}


def _table_rows(text: str) -> Iterator[tuple[int, list[str]]]:
    """Yield (line number, cells) for every non-blank, non-comment csv row."""
    reader = csv.reader(io.StringIO(text), skipinitialspace=True)
    for row in reader:
        cells = [cell.strip() for cell in row]
        if not any(cells) or cells[0].startswith("#"):
            continue
        yield reader.line_num, cells


def _optional_position(x: str, y: str, line: int) -> Position | None:
    if not x and not y:
        return None
    if not x or not y:
        raise LogicParseError("coordinates must be given in pairs", line, source="locations")
    try:
        return Position(float(x), float(y))
    except ValueError as e:
        raise LogicParseError(f"invalid coordinates '{x}, {y}'", line, source="locations") from e


def _logical_lines(areas: str) -> list[_Line]:
    """Strip comments and blank lines, measuring indentation."""
    lines: list[_Line] = []

    for number, raw in enumerate(areas.splitlines(), start=1):
        content = raw.split("#", 1)[0].rstrip()
        if not content.strip():
            continue

        text = content.lstrip(" ")
        if text[0].isspace():
            raise LogicParseError("indentation must use spaces", number)

        lines.append(_Line(number=number, indent=len(content) - len(text), text=text))

    return lines


class _AreasParser:
    """Line-oriented parser for the indentation structure of areas text."""

    def __init__(self, areas: str, settings: LogicSettings) -> None:
        self._lines = _logical_lines(areas)
        self._settings = settings
        self._cursor = 0

    def parse(self) -> list[_AnchorDeclaration]:
        anchors: list[_AnchorDeclaration] = []

        while self._cursor < len(self._lines):
            line = self._lines[self._cursor]
            if line.indent:
                raise LogicParseError("unexpected indentation", line.number)

            keyword = line.text.split(maxsplit=1)[0]
            if keyword == "anchor":
                anchors.append(self._parse_anchor(line))
            elif keyword in SKIPPED_BLOCKS:
                if not line.text.endswith(":"):
                    raise LogicParseError(f"expected ':' after {keyword} declaration", line.number)
                self._cursor += 1
                self._take_block(line.indent)
            else:
                raise LogicParseError(f"unknown declaration '{keyword}'", line.number)

        return anchors

    def _take_block(self, parent_indent: int) -> list[_Line]:
        """Consume and return all following lines indented deeper than the parent."""
        start = self._cursor
        while self._cursor < len(self._lines) and self._lines[self._cursor].indent > parent_indent:
            self._cursor += 1
        return self._lines[start:self._cursor]

    def _parse_anchor(self, header: _Line) -> _AnchorDeclaration:
        match = ANCHOR_HEADER.match(header.text)
        if match is None:
            raise LogicParseError(
                "malformed anchor declaration, expected 'anchor <name> [at <x>, <y>]:'",
                header.number,
            )

        position = None
        if match["x"] is not None:
            position = Position(float(match["x"]), float(match["y"]))
        anchor = _AnchorDeclaration(name=match["name"], position=position, line=header.number)

        self._cursor += 1
        body = self._take_block(header.indent)
        if not body:
            raise LogicParseError(f"anchor {anchor.name} has no body", header.number)

        entry_indent = body[0].indent
        index = 0
        while index < len(body):
            line = body[index]
            if line.indent != entry_indent:
                raise LogicParseError("inconsistent indentation", line.number)

            end = index + 1
            while end < len(body) and body[end].indent > entry_indent:
                end += 1

            entry = self._parse_entry(line, body[index + 1:end])
            if entry is not None:
                anchor.entries.append(entry)
            index = end

        return anchor

    def _parse_entry(self, line: _Line, block: list[_Line]) -> _Entry | None:
        match = ENTRY.match(line.text)
        if match is None:
            raise LogicParseError(f"malformed entry '{line.text}'", line.number)

        keyword = match["keyword"]
        if keyword in FLAG_ENTRIES:
            return None
        if keyword != "conn" and keyword not in LEAF_ENTRIES:
            raise LogicParseError(f"unknown entry '{keyword}'", line.number)

        target = match["target"]
        if target is None:
            raise LogicParseError(f"{keyword} is missing its target", line.number)
        if match["colon"] is None:
            raise LogicParseError(f"expected ':' after {keyword} {target}", line.number)

        inline = match["requirements"]
        if inline and block:
            raise LogicParseError("unexpected indentation after inline requirements", block[0].number)
        if not inline and not block:
            raise LogicParseError(f"{keyword} {target} is missing its requirements", line.number)

        if inline:
            alternatives = [inline]
        else:
            alternatives = [child.text for child in block if child.indent == block[0].indent]

        permitted = any(self._permits(alternative) for alternative in alternatives)
        if not permitted:
            logger.debug(f"Pruned {keyword} {target} on line {line.number}")

        return _Entry(keyword=keyword, target=target, line=line.number, permitted=permitted)

    def _permits(self, alternative: str) -> bool:
        """Check the leading keyword of a requirement alternative."""
        keyword = re.split(r"[\s,:]", alternative, maxsplit=1)[0].lower()
        if keyword == "impossible":
            return False

        difficulty = Difficulty.from_keyword(keyword)
        return difficulty is None or difficulty <= self._settings.difficulty


def _build_node_table(
    declarations: list[_AnchorDeclaration],
    locations: dict[str, Location],
    states: set[str],
    validate: bool,
) -> list[LogicNode]:
    nodes: list[LogicNode] = []
    by_name: dict[str, LogicNode] = {}

    # Anchors take the first indices so connections can refer forward
    for declaration in declarations:
        if declaration.name in by_name:
            raise LogicParseError(f"anchor {declaration.name} is declared twice", declaration.line)

        node = LogicNode(
            kind=NodeKind.ANCHOR,
            identifier=declaration.name,
            index=len(nodes),
            position=declaration.position,
        )
        nodes.append(node)
        by_name[node.identifier] = node

    for declaration in declarations:
        anchor = by_name[declaration.name]
        for entry in declaration.entries:
            if not entry.permitted:
                continue
            target = _resolve_target(entry, nodes, by_name, locations, states, validate)
            anchor.connections.append(LogicConnection(to=target.index))

    return nodes


def _resolve_target(
    entry: _Entry,
    nodes: list[LogicNode],
    by_name: dict[str, LogicNode],
    locations: dict[str, Location],
    states: set[str],
    validate: bool,
) -> LogicNode:
    existing = by_name.get(entry.target)

    if entry.keyword == "conn":
        if existing is None or existing.kind is not NodeKind.ANCHOR:
            raise LogicParseError(f"connection to unknown anchor {entry.target}", entry.line)
        return existing

    kind = LEAF_ENTRIES[entry.keyword]
    if existing is not None:
        if existing.kind is not kind:
            raise LogicParseError(
                f"{entry.target} is used as both {existing.kind.value} and {kind.value}",
                entry.line,
            )
        return existing

    if kind is NodeKind.STATE:
        if validate and entry.target not in states:
            raise LogicParseError(f"unknown state {entry.target}", entry.line)
        position = None
    else:
        location = locations.get(entry.target)
        if location is None:
            raise LogicParseError(f"unknown location {entry.target}", entry.line)
        position = location.map_position

    node = LogicNode(kind=kind, identifier=entry.target, index=len(nodes), position=position)
    nodes.append(node)
    by_name[node.identifier] = node
    return node
