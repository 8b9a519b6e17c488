"""Tests for notebrief CLI."""

import json
import pytest
from pathlib import Path
import tempfile
from typer.testing import CliRunner
from notebrief.cli import app
from notebrief.config import CONFIG_FILE, NOTEBRIEF_DIR
from notebrief.storage import read_json, write_json


runner = CliRunner()


@pytest.fixture
def vault():
    """Create a temporary vault with a few meeting notes."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir)
        (root / "meetings").mkdir()
        (root / "meetings" / "q4-planning.md").write_text(
            "---\ntags: [planning]\n---\n# Q4 Planning Meeting\n\n"
            "Sarah Chen discussed the roadmap and hiring.\n"
        )
        (root / "budget.md").write_text("# Budget Review\n\nTravel costs are up. #finance\n")
        (root / "recipes.md").write_text("# Soup\n\nOnions, stock, patience.\n")
        yield root


class TestInitCommand:
    """Tests for the init command."""

    def test_init_creates_config(self, vault: Path) -> None:
        """Test that init writes a default config."""
        result = runner.invoke(app, ["init", str(vault)])

        assert result.exit_code == 0
        assert "Initialized notebrief" in result.stdout
        config = read_json(vault / NOTEBRIEF_DIR / CONFIG_FILE)
        assert config["retrieval"]["max_results"] == 10

    def test_init_fails_if_already_exists(self, vault: Path) -> None:
        """Test that init fails if .notebrief already exists."""
        runner.invoke(app, ["init", str(vault)])

        result = runner.invoke(app, ["init", str(vault)])

        assert result.exit_code == 1
        assert "already initialized" in result.stdout

    def test_init_force_resets_config(self, vault: Path) -> None:
        """Test that init --force rewrites the config."""
        runner.invoke(app, ["init", str(vault)])
        write_json(vault / NOTEBRIEF_DIR / CONFIG_FILE, {"retrieval": {"max_results": 2}})

        result = runner.invoke(app, ["init", str(vault), "--force"])

        assert result.exit_code == 0
        assert read_json(vault / NOTEBRIEF_DIR / CONFIG_FILE)["retrieval"]["max_results"] == 10

    def test_init_updates_gitignore_in_git_repo(self, vault: Path) -> None:
        (vault / ".git").mkdir()

        runner.invoke(app, ["init", str(vault)])

        lines = (vault / ".gitignore").read_text().splitlines()
        assert ".notebrief/" in lines
        assert ".notebrief-logs/" in lines

    def test_init_leaves_plain_folders_alone(self, vault: Path) -> None:
        runner.invoke(app, ["init", str(vault)])
        assert not (vault / ".gitignore").exists()


class TestIndexCommand:
    """Tests for the index command."""

    def test_index_reports_counts(self, vault: Path) -> None:
        result = runner.invoke(app, ["index", str(vault), "--plain"])

        assert result.exit_code == 0
        assert "Notes found" in result.stdout
        assert "Indexed" in result.stdout
        assert "3" in result.stdout

    def test_index_lists_unreadable_notes(self, vault: Path) -> None:
        (vault / "broken.md").write_bytes(b"\xff\xfe\x00")

        result = runner.invoke(app, ["index", str(vault), "--plain"])

        assert result.exit_code == 0
        assert "broken.md" in result.stdout

    def test_index_missing_vault(self, vault: Path) -> None:
        result = runner.invoke(app, ["index", str(vault / "nope")])

        assert result.exit_code == 1
        assert "Not a directory" in result.output

    def test_index_invalid_config(self, vault: Path) -> None:
        write_json(vault / NOTEBRIEF_DIR / CONFIG_FILE, {"retrieval": {"max_results": 0}})

        result = runner.invoke(app, ["index", str(vault)])

        assert result.exit_code == 1
        assert "Invalid config" in result.output


class TestContextCommand:
    """Tests for the context command and its alias."""

    def test_context_markdown(self, vault: Path) -> None:
        result = runner.invoke(app, [
            "context", str(vault), "--title", "Planning Sync", "--attendee", "Sarah Chen",
        ])

        assert result.exit_code == 0
        assert "# Context for: Planning Sync with Sarah Chen" in result.stdout
        assert "## Q4 Planning Meeting" in result.stdout
        assert "Soup" not in result.stdout
        assert "attendees" in result.stdout

    def test_context_json(self, vault: Path) -> None:
        result = runner.invoke(app, [
            "context", str(vault), "-T", "Budget", "-t", "finance", "--json",
        ])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["query"]["topics"] == ["finance"]
        assert [m["path"] for m in data["matches"]] == ["budget.md"]
        assert "tags" in data["matches"][0]["matched_fields"]

    def test_q_alias(self, vault: Path) -> None:
        result = runner.invoke(app, ["q", str(vault), "-T", "Planning"])

        assert result.exit_code == 0
        assert "Q4 Planning Meeting" in result.stdout

    def test_no_matches(self, vault: Path) -> None:
        result = runner.invoke(app, ["context", str(vault), "-T", "Xylophone recital"])

        assert result.exit_code == 0
        assert "No relevant notes found." in result.stdout

    def test_requires_some_query(self, vault: Path) -> None:
        result = runner.invoke(app, ["context", str(vault)])

        assert result.exit_code == 1
        assert "--title" in result.output

    def test_output_file(self, vault: Path) -> None:
        out = vault / "out" / "context.json"

        result = runner.invoke(app, [
            "context", str(vault), "-T", "Planning Sync", "--json", "--output", str(out),
        ])

        assert result.exit_code == 0
        assert "written to" in result.stdout
        assert read_json(out)["matches"][0]["title"] == "Q4 Planning Meeting"

    def test_no_snippets(self, vault: Path) -> None:
        result = runner.invoke(app, [
            "context", str(vault), "-T", "Planning Sync", "--no-snippets", "--json",
        ])

        assert result.exit_code == 0
        assert json.loads(result.stdout)["matches"][0]["snippets"] == []

    def test_limit(self, vault: Path) -> None:
        result = runner.invoke(app, [
            "context", str(vault), "-T", "Planning Budget", "--limit", "1", "--json",
        ])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert len(data["matches"]) == 1
        assert data["total_matches"] == 2

    @pytest.mark.parametrize("args, option", [
        (["--limit", "-1"], "--limit"),
        (["--limit", "0"], "--limit"),
        (["--min-score", "5"], "--min-score"),
        (["--min-score", "-0.5"], "--min-score"),
    ])
    def test_rejects_out_of_range_overrides(self, vault: Path, args: list[str], option: str) -> None:
        result = runner.invoke(app, ["context", str(vault), "-T", "Planning Budget", "--json"] + args)

        assert result.exit_code == 1
        assert f"Invalid {option}" in result.output

    def test_weights_file(self, vault: Path) -> None:
        weights = vault / "weights.json"
        write_json(weights, {"title": 1.0, "content": 0, "tags": 0, "attendees": 0,
                             "search_bonus": 0, "recency": 0})

        result = runner.invoke(app, [
            "context", str(vault), "-T", "Budget Review", "--weights-file", str(weights), "--json",
        ])

        assert result.exit_code == 0
        [match] = json.loads(result.stdout)["matches"]
        assert match["relevance_score"] == 1.0

    def test_invalid_weights_fall_back_to_defaults(self, vault: Path) -> None:
        weights = vault / "weights.json"
        write_json(weights, {"title": 7})

        result = runner.invoke(app, ["context", str(vault), "-T", "Budget Review", "--json"] +
                               ["--weights-file", str(weights)])

        assert result.exit_code == 0
        assert "budget.md" in result.stdout

    def test_missing_weights_file(self, vault: Path) -> None:
        result = runner.invoke(app, [
            "context", str(vault), "-T", "Budget", "--weights-file", str(vault / "nope.json"),
        ])

        assert result.exit_code == 1
        assert "not found" in result.output


class TestConfigCommands:
    """Tests for config show, set and reset."""

    def test_requires_init(self, vault: Path) -> None:
        result = runner.invoke(app, ["config", "show", "--base", str(vault)])
        assert result.exit_code == 1

    def test_set_nested_value(self, vault: Path) -> None:
        runner.invoke(app, ["init", str(vault)])

        result = runner.invoke(app, ["config", "set", "retrieval.max_results", "5", "--base", str(vault)])

        assert result.exit_code == 0
        assert read_json(vault / NOTEBRIEF_DIR / CONFIG_FILE)["retrieval"]["max_results"] == 5

    def test_set_list_value(self, vault: Path) -> None:
        runner.invoke(app, ["init", str(vault)])

        runner.invoke(app, ["config", "set", "exclude_patterns", ".*,archive", "--base", str(vault)])

        assert read_json(vault / NOTEBRIEF_DIR / CONFIG_FILE)["exclude_patterns"] == [".*", "archive"]

    def test_set_rejects_invalid_value(self, vault: Path) -> None:
        runner.invoke(app, ["init", str(vault)])

        result = runner.invoke(app, ["config", "set", "relevance_weights.title", "2", "--base", str(vault)])

        assert result.exit_code == 1
        assert read_json(vault / NOTEBRIEF_DIR / CONFIG_FILE)["relevance_weights"]["title"] == 0.4

    def test_show(self, vault: Path) -> None:
        runner.invoke(app, ["init", str(vault)])
        runner.invoke(app, ["config", "set", "retrieval.max_results", "5", "--base", str(vault)])

        result = runner.invoke(app, ["config", "show", "--base", str(vault), "--plain"])

        assert result.exit_code == 0
        assert "retrieval.max_results" in result.stdout
        assert "custom" in result.stdout

    def test_reset(self, vault: Path) -> None:
        runner.invoke(app, ["init", str(vault)])
        runner.invoke(app, ["config", "set", "retrieval.max_results", "5", "--base", str(vault)])

        result = runner.invoke(app, ["config", "reset", "--base", str(vault)])

        assert result.exit_code == 0
        assert read_json(vault / NOTEBRIEF_DIR / CONFIG_FILE)["retrieval"]["max_results"] == 10

    def test_config_respected_by_context(self, vault: Path) -> None:
        runner.invoke(app, ["init", str(vault)])
        runner.invoke(app, ["config", "set", "exclude_patterns", ".*,meetings", "--base", str(vault)])

        result = runner.invoke(app, ["context", str(vault), "-T", "Planning", "--json"])

        assert json.loads(result.stdout)["matches"] == []
