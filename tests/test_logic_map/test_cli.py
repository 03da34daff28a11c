"""Tests for the logic map command-line interface."""

import json

import pytest
from unittest.mock import patch

from src.logic_map.cli import main


@pytest.fixture(autouse=True)
def quiet_logging():
    """Keep CLI runs from reconfiguring the root logger during tests."""
    with patch("src.logic_map.cli.setup_logging") as mock_setup:
        yield mock_setup


class TestMain:
    """Tests for main()."""

    def test_shows_figure_by_default(self, sample_files):
        with patch("src.logic_map.cli.show_figure") as mock_show:
            assert main(list(sample_files)) == 0
        mock_show.assert_called_once()
        fig = mock_show.call_args[0][0]
        assert fig.layout.title.text.startswith("Logic Map:")

    def test_export_html(self, tmp_path, sample_files, capsys):
        output_path = tmp_path / "map.html"
        assert main([*sample_files, "--export", str(output_path), "--title", "Marsh"]) == 0
        assert output_path.exists()
        assert f"Exported to {output_path}" in capsys.readouterr().out

    def test_export_json(self, tmp_path, sample_files):
        output_path = tmp_path / "graph.json"
        assert main([*sample_files, "--json", str(output_path)]) == 0

        data = json.loads(output_path.read_text(encoding="utf-8"))
        assert "MarshSpawn.Main" in data["nodes"]
        assert len(data["connections"]) == 5
        assert {c["type"] for c in data["connections"]} == {"Branch", "Leaf"}

    def test_verbose_sets_debug_console(self, sample_files, quiet_logging):
        with patch("src.logic_map.cli.show_figure"):
            main([*sample_files, "-v"])
        assert quiet_logging.call_args.kwargs["console_level"] == 10

    def test_paths_from_environment(self, monkeypatch, sample_files):
        areas_path, locations_path = sample_files
        monkeypatch.setenv("LOGIC_MAP_AREAS", areas_path)
        monkeypatch.setenv("LOGIC_MAP_LOCATIONS", locations_path)
        with patch("src.logic_map.cli.show_figure") as mock_show:
            assert main([]) == 0
        mock_show.assert_called_once()

    def test_missing_paths_is_a_usage_error(self, monkeypatch):
        monkeypatch.delenv("LOGIC_MAP_AREAS", raising=False)
        monkeypatch.delenv("LOGIC_MAP_LOCATIONS", raising=False)
        with patch("src.logic_map.cli.load_dotenv"):
            with pytest.raises(SystemExit) as excinfo:
                main([])
        assert excinfo.value.code == 2


class TestErrors:
    """Errors are reported on stderr with exit status 1."""

    def test_missing_file(self, tmp_path, sample_files, capsys):
        _, locations_path = sample_files
        assert main([str(tmp_path / "missing.wotw"), locations_path]) == 1
        assert "Error: Logic file not found" in capsys.readouterr().err

    def test_unreadable_file(self, tmp_path, sample_files, capsys):
        _, locations_path = sample_files
        assert main([str(tmp_path), locations_path]) == 1
        assert "Error: Failed to read" in capsys.readouterr().err

    def test_parse_failure(self, tmp_path, sample_files, capsys):
        _, locations_path = sample_files
        areas_path = tmp_path / "broken.wotw"
        areas_path.write_text("anchor A:\n", encoding="utf-8")
        assert main([str(areas_path), locations_path]) == 1
        assert "Error: areas line 1: anchor A has no body" in capsys.readouterr().err


class TestLocate:
    """Tests for --locate and --locate-connection."""

    def test_locate_node(self, sample_files, sample_areas, capsys):
        assert main([*sample_files, "--locate", "MarshSpawn.Cave"]) == 0
        expected_line = sample_areas.splitlines().index("anchor MarshSpawn.Cave at -730, -4280:") + 1
        assert f"MarshSpawn.Cave: line {expected_line}, column 1" in capsys.readouterr().out

    def test_locate_unknown_node(self, sample_files, capsys):
        assert main([*sample_files, "--locate", "MarshSpawn.Nowhere"]) == 1
        assert "No declaration found for MarshSpawn.Nowhere" in capsys.readouterr().err

    def test_locate_connection_in_both_orientations(self, sample_files, sample_areas, capsys):
        lines = sample_areas.splitlines()
        cave_anchor = lines.index("anchor MarshSpawn.Cave at -730, -4280:")
        main_to_cave = lines.index("  conn MarshSpawn.Cave:") + 1
        cave_to_main = lines.index("  conn MarshSpawn.Main: free", cave_anchor) + 1

        assert main([*sample_files, "--locate-connection", "MarshSpawn.Main", "MarshSpawn.Cave"]) == 0
        assert f"line {main_to_cave}, column 3" in capsys.readouterr().out

        assert main([*sample_files, "--locate-connection", "MarshSpawn.Cave", "MarshSpawn.Main"]) == 0
        assert f"line {cave_to_main}, column 3" in capsys.readouterr().out

        args = [*sample_files, "--locate-connection", "MarshSpawn.Main", "MarshSpawn.Cave", "--inverse"]
        assert main(args) == 0
        assert f"line {cave_to_main}, column 3" in capsys.readouterr().out

    def test_locate_one_way_connection_against_its_direction(self, tmp_path, capsys):
        areas_path = tmp_path / "one_way.wotw"
        areas_path.write_text(
            "anchor A at 0, 0:\n  conn B: free\nanchor B at 1, 1:\n  conn A: impossible\n",
            encoding="utf-8",
        )
        locations_path = tmp_path / "loc_data.csv"
        locations_path.write_text("", encoding="utf-8")
        files = [str(areas_path), str(locations_path)]

        assert main([*files, "--locate-connection", "B", "A"]) == 1
        assert "No declaration found for B -> A" in capsys.readouterr().err

        assert main([*files, "--locate-connection", "A", "B"]) == 0
        assert "A -> B: line 2, column 3" in capsys.readouterr().out

        assert main([*files, "--locate-connection", "A", "B", "--inverse"]) == 0
        assert "A -> B: line 2, column 3" in capsys.readouterr().out

    def test_locate_leaf_connection(self, sample_files, sample_areas, capsys):
        expected_line = sample_areas.splitlines().index("  pickup MarshSpawn.CaveEX: free") + 1
        assert main([*sample_files, "--locate-connection", "MarshSpawn.Cave", "MarshSpawn.CaveEX"]) == 0
        assert f"line {expected_line}, column 3" in capsys.readouterr().out

    def test_locate_missing_connection(self, sample_files, capsys):
        assert main([*sample_files, "--locate-connection", "MarshSpawn.Main", "MarshSpawn.Ledge"]) == 1
        assert "No declaration found for MarshSpawn.Main -> MarshSpawn.Ledge" in capsys.readouterr().err
