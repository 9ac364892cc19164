"""Tests for the command line interface."""

import json

import pytest

from schema_explorer.cli import build_parser, main


@pytest.fixture
def snapshot_file(tmp_path, snapshot_data):
    path = tmp_path / "shop.json"
    path.write_text(json.dumps(snapshot_data), encoding="utf-8")
    return path


class TestParser:
    def test_arguments(self):
        args = build_parser().parse_args(
            ["--snapshot", "shop.json", "-l", "cs", "-n", "Shop.Daos", "--json", "--no-models"]
        )
        assert args.snapshot == "shop.json"
        assert args.language == "cs"
        assert args.namespace == "Shop.Daos"
        assert args.json and args.no_models


class TestMain:
    def test_list_languages(self, capsys):
        assert main(["--list-languages"]) == 0
        output = capsys.readouterr().out
        assert "python" in output
        assert "csharp" in output

    def test_create_config(self, tmp_path):
        path = tmp_path / "codegen.config.json"
        assert main(["--create-config", str(path)]) == 0
        assert json.loads(path.read_text(encoding="utf-8"))["namespace"] == "Models"
        # A second run refuses to overwrite
        assert main(["--create-config", str(path)]) == 1

    @pytest.mark.integration
    def test_generate_from_snapshot(self, tmp_path, snapshot_file):
        out = tmp_path / "out"
        code = main(["--snapshot", str(snapshot_file), "--output", str(out), "--json"])

        assert code == 0
        assert "class Customer:" in (out / "models.py").read_text(encoding="utf-8")
        assert (out / "model.json").exists()

    @pytest.mark.integration
    def test_generate_with_config_file(self, tmp_path, snapshot_file):
        config = tmp_path / "codegen.config.json"
        config.write_text(
            json.dumps(
                {
                    "language": "csharp",
                    "namespace": "Shop.Daos",
                    "output": str(tmp_path / "cs"),
                    "classNameOverrides": {"OrderLines": "LineItem"},
                }
            ),
            encoding="utf-8",
        )
        assert main(["--snapshot", str(snapshot_file), "--config", str(config)]) == 0
        content = (tmp_path / "cs" / "models.cs").read_text(encoding="utf-8")
        assert "public partial class LineItem" in content

    def test_missing_source(self, tmp_path, capsys):
        assert main(["--output", str(tmp_path / "out")]) == 1
        assert "Configuration error" in capsys.readouterr().out

    def test_unknown_language(self, tmp_path, snapshot_file):
        args = ["--snapshot", str(snapshot_file), "-o", str(tmp_path / "out"), "-l", "cobol"]
        assert main(args) == 1

    def test_bad_config_key(self, tmp_path, snapshot_file):
        config = tmp_path / "codegen.config.json"
        config.write_text('{"colour": "blue"}', encoding="utf-8")
        assert main(["--snapshot", str(snapshot_file), "--config", str(config)]) == 1

    def test_failed_template_sets_exit_code(self, tmp_path, snapshot_file):
        templates = tmp_path / "templates"
        templates.mkdir()
        (templates / "broken.j2").write_text("{{ nope }}", encoding="utf-8")
        args = [
            "--snapshot",
            str(snapshot_file),
            "-o",
            str(tmp_path / "out"),
            "--templates",
            str(templates),
        ]
        assert main(args) == 1
