"""Plotly-based interactive visualization for logic graphs."""

from dataclasses import dataclass

import plotly.graph_objects as go

from src.logic_map.graph import Connection, ConnectionType, Graph

# Legend groups the visibility menu switches between
NODE_GROUP = "nodes"
CONNECTION_GROUP = "connections"

LEAF_NODE_TRACE = "Pickups"
LEAF_CONNECTION_TRACE = "Pickup connections"


@dataclass
class NodeInfo:
    """Extracted node metadata for display."""

    name: str
    position: tuple[float, float]
    is_leaf: bool
    connection_count: int


def extract_node_info(graph: Graph) -> list[NodeInfo]:
    """
    Extract displayable metadata from all nodes.

    A node counts as a leaf when the graph lists it in ``leaves`` or a leaf
    connection ends at it, so pickups stay leaves even when no connection
    reaches them.

    Args:
        graph: Graph built from logic files

    Returns:
        List of NodeInfo, in the graph's node order
    """
    leaves: set[str] = set(graph.leaves)
    connection_counts: dict[str, int] = {}

    for connection in graph.connections:
        if connection.kind is ConnectionType.LEAF:
            leaves.add(connection.end)
        for name in (connection.start, connection.end):
            connection_counts[name] = connection_counts.get(name, 0) + 1

    return [
        NodeInfo(
            name=node.name,
            position=(node.position.x, node.position.y),
            is_leaf=node.name in leaves,
            connection_count=connection_counts.get(node.name, 0),
        )
        for node in graph.nodes.values()
    ]


def create_figure(
    graph: Graph,
    title: str = "Logic Map",
    highlight_nodes: list[str] | None = None,
    show_connections: bool = True,
    show_leaves: bool = True,
    show_labels: bool = False,
) -> go.Figure:
    """
    Create interactive 2D Plotly figure for a logic graph.

    Args:
        graph: Graph built from logic files
        title: Figure title
        highlight_nodes: Node names to highlight (case-insensitive)
        show_connections: Whether to show connection lines
        show_leaves: Whether to show pickups, quests and their connections
        show_labels: Whether to show labels on all nodes

    Returns:
        Plotly Figure object ready for display
    """
    node_infos = extract_node_info(graph)
    highlight_set = {name.lower() for name in highlight_nodes or []}

    anchor_infos: list[NodeInfo] = []
    leaf_infos: list[NodeInfo] = []
    highlighted_infos: list[NodeInfo] = []

    for info in node_infos:
        if info.name.lower() in highlight_set:
            highlighted_infos.append(info)
        elif info.is_leaf:
            if show_leaves:
                leaf_infos.append(info)
        else:
            anchor_infos.append(info)

    fig = go.Figure()

    # Add connections first (behind nodes)
    if show_connections:
        two_way = [c for c in graph.connections if c.kind is ConnectionType.BRANCH and not c.unidirectional]
        one_way = [c for c in graph.connections if c.kind is ConnectionType.BRANCH and c.unidirectional]
        _add_connections_to_figure(fig, graph, two_way, "Two-way connections", "rgb(150, 150, 150)")
        _add_connections_to_figure(fig, graph, one_way, "One-way connections", "rgb(220, 20, 60)", dash="dash")
        if show_leaves:
            leaves = [c for c in graph.connections if c.kind is ConnectionType.LEAF]
            _add_connections_to_figure(fig, graph, leaves, LEAF_CONNECTION_TRACE, "rgb(218, 165, 32)", width=1)

    if anchor_infos:
        _add_nodes_to_figure(
            fig,
            anchor_infos,
            color="rgb(65, 105, 225)",  # Royal blue
            name="Anchors",
            marker_size=8,
            show_labels=show_labels,
        )

    if leaf_infos:
        _add_nodes_to_figure(
            fig,
            leaf_infos,
            color="rgb(255, 165, 0)",  # Orange
            name=LEAF_NODE_TRACE,
            marker_size=6,
            show_labels=show_labels,
            symbol="diamond",
        )

    # Highlighted nodes always carry labels
    if highlighted_infos:
        _add_nodes_to_figure(
            fig,
            highlighted_infos,
            color="rgb(50, 205, 50)",  # Lime green
            name="Highlighted",
            marker_size=14,
            show_labels=True,
        )

    visibility_menu = _create_visibility_menu(fig)

    fig.update_layout(
        title=title,
        xaxis=dict(title="X"),
        yaxis=dict(title="Y", scaleanchor="x", scaleratio=1),
        showlegend=True,
        legend=dict(
            yanchor="top",
            y=0.99,
            xanchor="left",
            x=0.01,
            itemclick="toggle",
            itemdoubleclick="toggleothers",
            groupclick="toggleitem",
        ),
        margin=dict(l=0, r=0, t=80, b=0),
        updatemenus=visibility_menu,
    )

    return fig


def _create_visibility_menu(fig: go.Figure) -> list[dict]:
    """
    Create a dropdown switching between connection and node layers.

    Traces are grouped by their legendgroup ("connections" or "nodes").
    """
    groups = [trace.legendgroup for trace in fig.data]
    leaf_traces = {LEAF_NODE_TRACE, LEAF_CONNECTION_TRACE}

    def visibility(keep) -> list:
        return [True if keep(i) else "legendonly" for i in range(len(groups))]

    layers = [
        ("Everything", lambda i: True),
        ("Nodes only", lambda i: groups[i] == NODE_GROUP),
        ("Connections only", lambda i: groups[i] == CONNECTION_GROUP),
        ("Without pickups", lambda i: fig.data[i].name not in leaf_traces),
    ]

    return [
        dict(
            type="dropdown",
            direction="down",
            buttons=[
                dict(label=label, method="restyle", args=[{"visible": visibility(keep)}])
                for label, keep in layers
            ],
            pad={"r": 10, "t": 10},
            showactive=True,
            x=0.0,
            xanchor="left",
            y=1.15,
            yanchor="top",
        )
    ]


def _add_nodes_to_figure(
    fig: go.Figure,
    infos: list[NodeInfo],
    color: str,
    name: str,
    marker_size: int = 8,
    show_labels: bool = True,
    symbol: str = "circle",
) -> None:
    """Add node markers with hover information."""
    x = [info.position[0] for info in infos]
    y = [info.position[1] for info in infos]

    hover_texts = [
        f"<b>{info.name}</b><br>"
        f"Position: ({info.position[0]:.1f}, {info.position[1]:.1f})<br>"
        f"Connections: {info.connection_count}"
        for info in infos
    ]
    labels = [info.name if show_labels else "" for info in infos]

    mode = "markers+text" if show_labels else "markers"
    fig.add_trace(
        go.Scatter(
            x=x,
            y=y,
            mode=mode,
            marker=dict(size=marker_size, color=color, symbol=symbol, opacity=0.9),
            text=labels,
            textposition="top center",
            textfont=dict(size=12, color="black"),
            hovertext=hover_texts,
            hoverinfo="text",
            name=name,
            legendgroup=NODE_GROUP,
        )
    )


def _add_connections_to_figure(
    fig: go.Figure,
    graph: Graph,
    connections: list[Connection],
    name: str,
    color: str,
    width: int = 2,
    dash: str = "solid",
) -> None:
    """Add connection lines to figure."""
    if not connections:
        return

    # Build coordinate lists with None separators for disconnected lines
    x: list[float | None] = []
    y: list[float | None] = []

    for connection in connections:
        start = graph.nodes[connection.start].position
        end = graph.nodes[connection.end].position
        x.extend([start.x, end.x, None])
        y.extend([start.y, end.y, None])

    fig.add_trace(
        go.Scatter(
            x=x,
            y=y,
            mode="lines",
            line=dict(color=color, width=width, dash=dash),
            hoverinfo="skip",
            name=name,
            legendgroup=CONNECTION_GROUP,
        )
    )


def show_figure(fig: go.Figure) -> None:
    """Display figure in browser."""
    fig.show()


def export_html(fig: go.Figure, output_path: str) -> None:
    """Export figure as standalone HTML file."""
    fig.write_html(output_path, include_plotlyjs=True, full_html=True)
