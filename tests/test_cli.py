"""Tests for the brainmap command-line interface."""

import json

import pytest

from brainmap.cli import create_parser, main
from brainmap.server.persistence import MapStore
from brainmap.workspace import Workspace

OUTLINE = "Loja.\nDescrição da loja.\n\nPaleta de cores.\nBranco e verde.\n"


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run every CLI test in an empty directory with no config overrides."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("BRAINMAP_AUTH_USER", raising=False)
    monkeypatch.delenv("BRAINMAP_STORAGE_DATA_DIR", raising=False)
    return tmp_path


@pytest.fixture
def saved_map(tmp_path, config):
    """A map saved by 'alice' under tmp_path/data; returns (data_dir, map_id)."""
    data_dir = tmp_path / "data"
    ws = Workspace(MapStore(data_dir), config)
    root = ws.graph.add_root_node("Shop", "Corner shop")
    ws.graph.add_child_node(root)
    ws.set_title("Plans")
    return data_dir, ws.save()


class TestParser:
    """Tests for create_parser()."""

    def test_global_options(self):
        args = create_parser().parse_args(["-v", "--config", "x.toml", "version"])
        assert args.verbose is True
        assert str(args.config) == "x.toml"
        assert args.command == "version"

    def test_convert_formats_are_exclusive(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["convert", "f.txt", "--json", "--markdown"])


class TestBasics:
    """Tests for version and help."""

    def test_version(self, capsys):
        assert main(["version"]) == 0
        assert capsys.readouterr().out.startswith("brainmap ")

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_missing_config_file_is_an_error(self, capsys):
        assert main(["--config", "nope.toml", "config", "show"]) == 1
        assert "Error:" in capsys.readouterr().err


class TestConvert:
    """Tests for `brainmap convert`."""

    def test_tree_output(self, tmp_path, capsys):
        (tmp_path / "notes.txt").write_text(OUTLINE, encoding="utf-8")
        assert main(["convert", "notes.txt"]) == 0
        out = capsys.readouterr().out
        assert "Loja\n└── Paleta de cores" in out
        assert "2 node(s), 1 edge(s)" in out

    def test_json_output(self, tmp_path, capsys):
        (tmp_path / "notes.txt").write_text(OUTLINE, encoding="utf-8")
        assert main(["convert", "notes.txt", "--json"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [n["data"]["label"] for n in data["nodes"]] == ["Loja", "Paleta de cores"]
        assert len(data["edges"]) == 1

    def test_markdown_output(self, tmp_path, capsys):
        (tmp_path / "notes.txt").write_text(OUTLINE, encoding="utf-8")
        assert main(["convert", "notes.txt", "--markdown"]) == 0
        assert capsys.readouterr().out.startswith("- Loja\n  Descrição da loja.\n  - Paleta de cores")

    def test_blank_file_fails(self, tmp_path, capsys):
        (tmp_path / "blank.txt").write_text("\n\n")
        assert main(["convert", "blank.txt"]) == 1
        assert "No ideas found" in capsys.readouterr().err

    def test_missing_file_fails(self, capsys):
        assert main(["convert", "missing.txt"]) == 1
        assert "File not found" in capsys.readouterr().err


class TestMaps:
    """Tests for `brainmap maps`."""

    def test_list(self, saved_map, capsys):
        data_dir, map_id = saved_map
        assert main(["maps", "--user", "alice", "--data-dir", str(data_dir), "list"]) == 0
        out = capsys.readouterr().out
        assert map_id in out
        assert "Plans" in out

    def test_list_json(self, saved_map, capsys):
        data_dir, map_id = saved_map
        assert main(["maps", "--user", "alice", "--data-dir", str(data_dir), "list", "--json"]) == 0
        assert json.loads(capsys.readouterr().out)[0]["id"] == map_id

    def test_list_without_user_fails(self, saved_map, capsys):
        data_dir, _ = saved_map
        assert main(["maps", "--data-dir", str(data_dir), "list"]) == 1
        assert "signed in" in capsys.readouterr().err

    def test_show(self, saved_map, capsys):
        data_dir, map_id = saved_map
        assert main(["maps", "--user", "alice", "--data-dir", str(data_dir), "show", map_id]) == 0
        assert capsys.readouterr().out.startswith("# Plans\n\n- Shop\n  Corner shop\n  - New Idea")

    def test_delete_requires_yes(self, saved_map, capsys):
        data_dir, map_id = saved_map
        args = ["maps", "--user", "alice", "--data-dir", str(data_dir), "delete", map_id]
        assert main(args) == 1
        assert MapStore(data_dir).load_map(map_id)

        assert main(args + ["--yes"]) == 0
        assert MapStore(data_dir).list_maps("alice") == []

    def test_rename(self, saved_map, capsys):
        data_dir, map_id = saved_map
        args = ["maps", "--user", "alice", "--data-dir", str(data_dir), "rename", map_id, "Better"]
        assert main(args) == 0
        assert MapStore(data_dir).load_map(map_id).title == "Better"

    def test_other_user_cannot_see_map(self, saved_map, capsys):
        data_dir, map_id = saved_map
        assert main(["maps", "--user", "bob", "--data-dir", str(data_dir), "show", map_id]) == 1
        assert "not found" in capsys.readouterr().err


class TestExport:
    """Tests for `brainmap export`."""

    def test_json(self, saved_map, capsys):
        data_dir, map_id = saved_map
        assert main(["export", map_id, "--user", "alice", "--data-dir", str(data_dir)]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["id"] == map_id
        assert data["title"] == "Plans"
        assert "hidden" not in data["nodes"][0]["data"]

    def test_markdown_to_file(self, saved_map, tmp_path):
        data_dir, map_id = saved_map
        out = tmp_path / "plans.md"
        args = ["export", map_id, "--format", "markdown", "-o", str(out),
                "--user", "alice", "--data-dir", str(data_dir)]
        assert main(args) == 0
        assert out.read_text(encoding="utf-8").startswith("# Plans")


class TestConfigCommand:
    """Tests for `brainmap config`."""

    def test_path_without_file(self, capsys):
        assert main(["config", "path"]) == 0
        assert "using defaults" in capsys.readouterr().out

    def test_path_with_file(self, tmp_path, capsys):
        (tmp_path / ".brainmap.toml").write_text("")
        assert main(["config", "path"]) == 0
        assert ".brainmap.toml" in capsys.readouterr().out

    def test_show_json_merges_file(self, tmp_path, capsys):
        (tmp_path / ".brainmap.toml").write_text('[server]\nport = 6000\n')
        assert main(["config", "show", "--json"]) == 0
        config = json.loads(capsys.readouterr().out)
        assert config["server"]["port"] == 6000
        assert config["mindmap"]["visibility"] == "global"

    def test_show_toml(self, capsys):
        assert main(["config", "show"]) == 0
        assert "[mindmap]" in capsys.readouterr().out

    def test_init_writes_template(self, tmp_path, capsys):
        assert main(["config", "init"]) == 0
        text = (tmp_path / ".brainmap.toml").read_text(encoding="utf-8")
        assert "[mindmap]" in text
        assert main(["config", "show", "--json"]) == 0

    def test_init_refuses_to_overwrite(self, tmp_path, capsys):
        (tmp_path / ".brainmap.toml").write_text("# mine\n")
        assert main(["config", "init"]) == 1
        assert (tmp_path / ".brainmap.toml").read_text() == "# mine\n"
        assert main(["config", "init", "--force"]) == 0


class TestServe:
    """Tests for `brainmap serve` (the server loop itself is not started)."""

    def test_uses_config_and_overrides(self, tmp_path, monkeypatch, capsys):
        from flask import Flask

        calls = {}

        def fake_run(self, host=None, port=None, debug=None):
            calls.update(host=host, port=port, debug=debug)

        monkeypatch.setattr(Flask, "run", fake_run)
        (tmp_path / ".brainmap.toml").write_text('[server]\nport = 6001\n')

        assert main(["serve", "--host", "0.0.0.0", "--data-dir", str(tmp_path / "d")]) == 0
        assert calls == {"host": "0.0.0.0", "port": 6001, "debug": False}
        assert "http://0.0.0.0:6001" in capsys.readouterr().out
