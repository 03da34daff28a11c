"""
Shared pytest fixtures for logic_map tests.

This module provides reusable fixtures that are automatically discovered
by pytest. Fixtures here are available to all test files.

Notes for new developers:
- SAMPLE_AREAS exercises every declaration the parser understands
- make_node builds node tables directly, skipping the parser, for tests
  that only care about graph derivation
"""

import pytest

from src.logic_map.logic import LogicConnection, LogicNode, NodeKind, Position

# Positioned anchors: Main, Cave, Ledge. Hidden has no position.
# Main <-> Cave is declared in both directions, Cave -> Ledge only needs
# unsafe, Ledge -> Cave is impossible and always pruned.
SAMPLE_AREAS = """\
# Sample logic for tests
requirement Bash:
  free

region MarshSpawn:
  moki: free

anchor MarshSpawn.Main at -799, -4310:
  nospawn
  refill Checkpoint: free
  state MarshSpawn.CaveOpened: free
  pickup MarshSpawn.RockHC: free
  quest MarshSpawn.LupoQuest: free
  conn MarshSpawn.Cave:
    moki: free
    unsafe: Bash
  conn MarshSpawn.Hidden: free

anchor MarshSpawn.Cave at -730, -4280:
  pickup MarshSpawn.CaveEX: free
  pickup MarshSpawn.Unmapped: free
  conn MarshSpawn.Main: free
  conn MarshSpawn.Ledge: unsafe, Bash

anchor MarshSpawn.Ledge at -700, -4250:
  conn MarshSpawn.Cave: impossible

anchor MarshSpawn.Hidden:
  conn MarshSpawn.Main: free
"""

SAMPLE_LOCATIONS = """\
identifier, zone, x, y, map_x, map_y
MarshSpawn.RockHC, Inkwater Marsh, -817, -4300, -817.5, -4300.25
MarshSpawn.LupoQuest, Inkwater Marsh, -780, -4305, -780, -4305
MarshSpawn.CaveEX, Inkwater Marsh, -725, -4275, -725, -4275
MarshSpawn.Unmapped, Inkwater Marsh, -760, -4290, ,
# locations nobody references are fine
MarshSpawn.Unused, Inkwater Marsh, 0, 0, 0, 0
"""


@pytest.fixture
def sample_areas() -> str:
    """Areas text covering anchors, leaves, flags and pruned entries."""
    return SAMPLE_AREAS


@pytest.fixture
def sample_locations() -> str:
    """Location table matching sample_areas."""
    return SAMPLE_LOCATIONS


@pytest.fixture
def make_node():
    """
    Factory for LogicNode objects.

    Example:
        def test_something(make_node):
            anchor = make_node(NodeKind.ANCHOR, "A", 0, (1.0, 2.0), connections=[1])
    """

    def _make(
        kind: NodeKind,
        identifier: str,
        index: int,
        position: tuple[float, float] | None = None,
        connections: list[int] | None = None,
    ) -> LogicNode:
        return LogicNode(
            kind=kind,
            identifier=identifier,
            index=index,
            position=Position(*position) if position is not None else None,
            connections=[LogicConnection(to=target) for target in connections or []],
        )

    return _make


@pytest.fixture
def sample_files(tmp_path, sample_areas, sample_locations):
    """Write the sample logic to disk, returning (areas_path, locations_path)."""
    areas_path = tmp_path / "areas.wotw"
    locations_path = tmp_path / "loc_data.csv"
    areas_path.write_text(sample_areas, encoding="utf-8")
    locations_path.write_text(sample_locations, encoding="utf-8")
    return str(areas_path), str(locations_path)
