"""Logic Map - Graph visualization and source lookup for areas logic."""

from src.logic_map.graph import Connection, ConnectionType, Graph, GraphError, Node, Vector2, build_graph
from src.logic_map.source import SourceLocation, connection_source_location, node_source_location

__all__ = [
    "Connection",
    "ConnectionType",
    "Graph",
    "GraphError",
    "Node",
    "Vector2",
    "build_graph",
    "SourceLocation",
    "connection_source_location",
    "node_source_location",
]
