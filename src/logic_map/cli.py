"""Command-line interface for the logic map."""

import argparse
import json
import logging
import os
import sys

from dotenv import load_dotenv

from src.logging_config import setup_logging
from src.logic_map.graph import build_graph
from src.logic_map.loader import load_logic_sources
from src.logic_map.source import SourceLocation, connection_source_location, node_source_location
from src.logic_map.viewer import create_figure, export_html, show_figure


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Logic Map - Interactive visualization of areas logic",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # View the graph in browser
  logic-map areas.wotw loc_data.csv

  # Highlight anchors and show all labels
  logic-map areas.wotw loc_data.csv --highlight MarshSpawn.Main --show-labels

  # Export to HTML file, or the graph itself to JSON
  logic-map areas.wotw loc_data.csv --export map.html
  logic-map areas.wotw loc_data.csv --json graph.json

  # Find where a node or connection is declared
  logic-map areas.wotw loc_data.csv --locate MarshSpawn.Main
  logic-map areas.wotw loc_data.csv --locate-connection MarshSpawn.Main MarshSpawn.Cave

Paths default to LOGIC_MAP_AREAS and LOGIC_MAP_LOCATIONS (a .env file is read).
        """,
    )

    parser.add_argument(
        "areas",
        nargs="?",
        default=os.getenv("LOGIC_MAP_AREAS"),
        help="Path to the areas logic file",
    )
    parser.add_argument(
        "locations",
        nargs="?",
        default=os.getenv("LOGIC_MAP_LOCATIONS"),
        help="Path to the location table (csv)",
    )
    parser.add_argument(
        "--export",
        type=str,
        metavar="FILE",
        help="Export to HTML file instead of opening browser",
    )
    parser.add_argument(
        "--json",
        type=str,
        metavar="FILE",
        help="Write the graph as JSON instead of opening browser",
    )
    parser.add_argument(
        "--locate",
        type=str,
        metavar="NAME",
        help="Print where the anchor NAME is declared",
    )
    parser.add_argument(
        "--locate-connection",
        type=str,
        nargs=2,
        metavar=("START", "END"),
        help="Print where the connection from START to END is declared",
    )
    parser.add_argument(
        "--inverse",
        action="store_true",
        help="With --locate-connection, prefer the declaration from END to START",
    )
    parser.add_argument(
        "--highlight",
        type=str,
        nargs="+",
        metavar="NAME",
        help="Node names to highlight",
    )
    parser.add_argument(
        "--no-connections",
        action="store_true",
        help="Hide connections",
    )
    parser.add_argument(
        "--no-leaves",
        action="store_true",
        help="Hide pickups, quests and their connections",
    )
    parser.add_argument(
        "--show-labels",
        action="store_true",
        help="Show labels on all nodes (default: only highlighted nodes)",
    )
    parser.add_argument(
        "--title",
        type=str,
        default=None,
        help="Custom title for the visualization",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args(argv)
    if not args.areas or not args.locations:
        parser.error("areas and locations paths are required (or set LOGIC_MAP_AREAS and LOGIC_MAP_LOCATIONS)")
    return args


def main(argv: list[str] | None = None) -> int:
    """Main entry point for logic map CLI."""
    load_dotenv()
    args = parse_args(argv)

    setup_logging(console_level=logging.DEBUG if args.verbose else logging.INFO)
    logger = logging.getLogger(__name__)

    try:
        logger.info(f"Loading logic from {args.areas} and {args.locations}")
        sources = load_logic_sources(args.areas, args.locations)
        graph = build_graph(sources.areas, sources.locations)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.locate:
        node = graph.nodes.get(args.locate)
        location = node_source_location(node, sources.areas) if node else None
        return _report_location(args.locate, location)

    if args.locate_connection:
        start, end = args.locate_connection
        connection = graph.find_connection(start, end)
        location = None
        if connection is not None and connection.unidirectional and connection.start != start:
            logger.info(f"{start} -> {end} is only traversable as {connection.start} -> {connection.end}")
        elif connection is not None:
            # Stored orientation may be the reverse of the requested one
            inverse = args.inverse != (connection.start != start)
            location = connection_source_location(connection, sources.areas, inverse=inverse)
        return _report_location(f"{start} -> {end}", location)

    if args.json:
        logger.info(f"Writing graph to {args.json}")
        with open(args.json, "w", encoding="utf-8") as json_file:
            json.dump(graph.to_dict(), json_file, indent=2)
        print(f"Exported to {args.json}")
        return 0

    title = args.title or f"Logic Map: {args.areas}"
    fig = create_figure(
        graph,
        title=title,
        highlight_nodes=args.highlight,
        show_connections=not args.no_connections,
        show_leaves=not args.no_leaves,
        show_labels=args.show_labels,
    )

    if args.export:
        logger.info(f"Exporting to {args.export}")
        export_html(fig, args.export)
        print(f"Exported to {args.export}")
    else:
        logger.info("Opening in browser")
        show_figure(fig)
    return 0


def _report_location(description: str, location: SourceLocation | None) -> int:
    if location is None:
        print(f"No declaration found for {description}", file=sys.stderr)
        return 1
    # Editors count from 1
    print(f"{description}: line {location.line + 1}, column {location.character + 1}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
