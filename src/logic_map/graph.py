"""Derive a positioned node/connection graph from areas logic."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

import numpy as np

from src.logic_map.logic import (
    LogicNode,
    LogicParseError,
    NodeKind,
    Position,
    parse_logic,
)
from src.logic_map.settings import LogicSettings

logger = logging.getLogger(__name__)

# State data carries no coordinates, so it never contributes to the graph
NO_STATES = ""


class GraphError(ValueError):
    """Raised when the logic text a graph is built from fails to parse."""


class ConnectionType(Enum):
    """A general distinction about a connection."""

    BRANCH = "Branch"  # anchor to anchor
    LEAF = "Leaf"  # anchor to pickup, quest or state


@dataclass(frozen=True)
class Vector2:
    """A point in two-dimensional space, in single precision."""

    x: float
    y: float

    @classmethod
    def from_position(cls, position: Position) -> "Vector2":
        coordinates = np.array([position.x, position.y], dtype=np.float32)
        return cls(x=float(coordinates[0]), y=float(coordinates[1]))


@dataclass(frozen=True)
class Node:
    """End point of a connection."""

    name: str
    position: Vector2


@dataclass(frozen=True)
class Connection:
    """
    Connection between two nodes.

    ``unidirectional`` is False when the logic declares both directions,
    in which case this single record stands for the pair.
    """

    start: str
    end: str
    unidirectional: bool
    kind: ConnectionType


@dataclass(frozen=True)
class Graph:
    """
    Set of nodes and the connections between them.

    ``leaves`` names the nodes that are not anchors (pickups, quests),
    whether or not any connection reaches them.
    """

    nodes: dict[str, Node]
    connections: list[Connection]
    leaves: frozenset[str] = frozenset()

    def find_connection(self, first: str, second: str) -> Connection | None:
        """Return the connection between two nodes in either orientation."""
        for connection in self.connections:
            if {connection.start, connection.end} == {first, second}:
                return connection
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize into JSON-ready primitives."""
        return {
            "nodes": {
                name: {
                    "name": node.name,
                    "position": {"x": node.position.x, "y": node.position.y},
                }
                for name, node in self.nodes.items()
            },
            "connections": [
                {
                    "start": connection.start,
                    "end": connection.end,
                    "unidirectional": connection.unidirectional,
                    "type": connection.kind.value,
                }
                for connection in self.connections
            ],
        }


def build_graph(areas: str, locations: str) -> Graph:
    """
    Build a graph from logic files.

    Args:
        areas: Areas logic text
        locations: Location table (csv)

    Returns:
        Graph of all positioned nodes and the connections between them

    Raises:
        GraphError: If the input fails to parse
    """
    # Most permissive difficulty so no path is optimized away
    settings = LogicSettings.unrestricted()
    try:
        logic = parse_logic(areas, locations, NO_STATES, settings, False)
    except LogicParseError as e:
        raise GraphError(str(e)) from e

    positioned = positioned_nodes(logic.nodes)
    nodes = {node.name: node for node in project_nodes(positioned)}
    connections = derive_connections(logic.nodes, positioned)
    leaves = frozenset(node.identifier for node, _ in positioned if node.kind is not NodeKind.ANCHOR)

    logger.info(
        f"Built graph: {len(nodes)} of {len(logic.nodes)} nodes positioned, "
        f"{len(connections)} connections"
    )
    return Graph(nodes=nodes, connections=connections, leaves=leaves)


def positioned_nodes(nodes: list[LogicNode]) -> list[tuple[LogicNode, Position]]:
    """Select the nodes carrying a map position, keeping table order."""
    return [(node, node.position) for node in nodes if node.position is not None]


def project_nodes(positioned: list[tuple[LogicNode, Position]]) -> list[Node]:
    """Map positioned nodes to output nodes."""
    return [
        Node(name=node.identifier, position=Vector2.from_position(position))
        for node, position in positioned
    ]


def derive_connections(
    nodes: list[LogicNode],
    positioned: list[tuple[LogicNode, Position]],
) -> list[Connection]:
    """
    Collapse anchor adjacency into display connections.

    Args:
        nodes: Full node table, used to resolve connection targets by index
        positioned: Output of positioned_nodes

    Returns:
        One connection per edge between positioned nodes, with reciprocal
        edges merged into a single bidirectional connection
    """
    pairs: list[tuple[LogicNode, LogicNode]] = []
    for anchor, _ in positioned:
        if anchor.kind is not NodeKind.ANCHOR:
            continue
        for logic_connection in anchor.connections:
            target = nodes[logic_connection.to]
            if target.position is not None:
                pairs.append((anchor, target))

    connections: list[Connection] = []
    while pairs:
        start, end = pairs.pop()

        reverse_index = next(
            (
                i
                for i, (other_start, other_end) in enumerate(pairs)
                if other_start.index == end.index and other_end.index == start.index
            ),
            None,
        )
        if reverse_index is not None:
            del pairs[reverse_index]

        connections.append(
            Connection(
                start=start.identifier,
                end=end.identifier,
                unidirectional=reverse_index is None,
                kind=_connection_type(end),
            )
        )

    return connections


def _connection_type(target: LogicNode) -> ConnectionType:
    if target.kind is NodeKind.ANCHOR:
        return ConnectionType.BRANCH
    if target.kind in (NodeKind.PICKUP, NodeKind.QUEST, NodeKind.STATE):
        return ConnectionType.LEAF
    raise ValueError(f"Unhandled node kind: {target.kind}")
