"""Tests for CLI commands"""

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from selfreview.cli import _read_text, cli
from selfreview.infrastructure.config.config_manager import CONFIG_FILENAME
from selfreview.infrastructure.git_source import DiffSourceError

SAMPLE_DIFF = """diff --git a/app/models/user.rb b/app/models/user.rb
index 1111111..2222222 100644
--- a/app/models/user.rb
+++ b/app/models/user.rb
@@ -1,3 +1,4 @@ class User
 class User
+  validates :email, presence: true
   has_many :posts
 end
diff --git a/app/controllers/users_controller.rb b/app/controllers/users_controller.rb
new file mode 100644
index 0000000..3333333
--- /dev/null
+++ b/app/controllers/users_controller.rb
@@ -0,0 +1,2 @@
+class UsersController
+end
diff --git a/vendor/gem/lib.rb b/vendor/gem/lib.rb
index 4444444..5555555 100644
--- a/vendor/gem/lib.rb
+++ b/vendor/gem/lib.rb
@@ -1 +1 @@
-old
+new
"""

DUPLICATE_FINDINGS = [
    {"file": "a.x", "startLine": 10, "endLine": 12, "title": "Null check missing"},
    {"file": "a.x", "startLine": 11, "endLine": 13, "title": "Missing null check"},
    {"file": "b.x", "startLine": 10, "endLine": 12, "title": "Null check missing"},
]


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    """Run every command in an empty directory without SELF_REVIEW_* variables"""
    for name in ("SELF_REVIEW_BASE_BRANCH", "SELF_REVIEW_TOKEN_BUDGET", "SELF_REVIEW_ANALYZER"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def diff_file(workdir) -> Path:
    path = workdir / "changes.diff"
    path.write_text(SAMPLE_DIFF, encoding="utf-8")
    return path


class TestReadText:
    """Tests for _read_text"""

    def test_reads_file(self, tmp_path):
        path = tmp_path / "x.txt"
        path.write_text("hello", encoding="utf-8")
        assert _read_text(path) == "hello"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            _read_text(tmp_path / "missing.txt")


class TestParseCommand:
    """Tests for parse command"""

    def test_lists_files(self, runner, diff_file):
        result = runner.invoke(cli, ["parse", str(diff_file)])

        assert result.exit_code == 0, result.output
        assert "app/models/user.rb [modified] 1 hunks, +1 -0" in result.output
        assert "app/controllers/users_controller.rb [added] 1 hunks, +2 -0" in result.output
        assert "@@ -1,3 +1,4 @@ class User" in result.output
        # vendor/** is excluded by default
        assert "vendor/gem/lib.rb" not in result.output

    def test_extra_exclude(self, runner, diff_file):
        result = runner.invoke(cli, ["parse", str(diff_file), "--exclude", "app/controllers/**"])

        assert result.exit_code == 0, result.output
        assert "users_controller.rb" not in result.output
        assert "app/models/user.rb" in result.output

    def test_json_output(self, runner, diff_file):
        result = runner.invoke(cli, ["parse", str(diff_file), "--json"])

        assert result.exit_code == 0, result.output
        assert '"path": "app/models/user.rb"' in result.output
        assert '"status": "added"' in result.output
        assert '"addedLines": [' in result.output

    def test_stdin(self, runner):
        result = runner.invoke(cli, ["parse", "-"], input=SAMPLE_DIFF)

        assert result.exit_code == 0, result.output
        assert "app/models/user.rb" in result.output

    def test_empty_diff(self, runner, workdir):
        empty = workdir / "empty.diff"
        empty.write_text("", encoding="utf-8")

        result = runner.invoke(cli, ["parse", str(empty)])

        assert result.exit_code == 0
        assert "No files in diff." in result.output

    def test_missing_file(self, runner, workdir):
        result = runner.invoke(cli, ["parse", str(workdir / "missing.diff")])

        assert result.exit_code != 0
        assert "Cannot read diff" in result.output

    def test_config_ignore_patterns(self, runner, workdir, diff_file):
        (workdir / CONFIG_FILENAME).write_text("ignore:\n  patterns:\n    - app/models/**\n", encoding="utf-8")

        result = runner.invoke(cli, ["parse", str(diff_file)])

        assert result.exit_code == 0, result.output
        assert "app/models/user.rb" not in result.output
        assert "vendor/gem/lib.rb" in result.output

    def test_invalid_config(self, runner, workdir, diff_file):
        (workdir / CONFIG_FILENAME).write_text("limits:\n  token_budget: 0\n", encoding="utf-8")

        result = runner.invoke(cli, ["parse", str(diff_file)])

        assert result.exit_code != 0
        assert "limits.token_budget" in result.output


class TestChunkCommand:
    """Tests for chunk command"""

    def test_single_chunk_in_priority_order(self, runner, diff_file):
        result = runner.invoke(cli, ["chunk", str(diff_file)])

        assert result.exit_code == 0, result.output
        assert "Chunk 1: 2 files" in result.output
        controller = result.output.index("[0] app/controllers/users_controller.rb")
        model = result.output.index("[2] app/models/user.rb")
        assert controller < model

    def test_small_budget_splits_files(self, runner, diff_file):
        result = runner.invoke(cli, ["chunk", str(diff_file), "--token-budget", "1"])

        assert result.exit_code == 0, result.output
        assert "Chunk 1: 1 files" in result.output
        assert "Chunk 2: 1 files" in result.output

    def test_max_files_override(self, runner, diff_file):
        result = runner.invoke(cli, ["chunk", str(diff_file), "--max-files", "1"])

        assert result.exit_code == 0, result.output
        assert "Chunk 2:" in result.output

    def test_show_context_with_repo(self, runner, workdir, diff_file):
        (workdir / "app" / "models").mkdir(parents=True)
        (workdir / "app" / "models" / "user.rb").write_text(
            "class User\n  validates :email, presence: true\n  has_many :posts\nend\n",
            encoding="utf-8",
        )

        result = runner.invoke(
            cli, ["chunk", str(diff_file), "--repo", str(workdir), "--context-lines", "1", "--show-context"]
        )

        assert result.exit_code == 0, result.output
        assert "## File: app/models/user.rb" in result.output
        assert "+    2 |   validates :email, presence: true" in result.output
        assert "     1 | class User" in result.output
        # Controller is not on disk, so its raw hunk is shown
        assert "### Diff hunk at line 1" in result.output

    def test_nothing_to_review(self, runner, workdir):
        empty = workdir / "empty.diff"
        empty.write_text("", encoding="utf-8")

        result = runner.invoke(cli, ["chunk", str(empty)])

        assert result.exit_code == 0
        assert "Nothing to review." in result.output


class TestDedupeCommand:
    """Tests for dedupe command"""

    def test_collapses_duplicates(self, runner, workdir):
        path = workdir / "findings.json"
        path.write_text(json.dumps(DUPLICATE_FINDINGS), encoding="utf-8")

        result = runner.invoke(cli, ["dedupe", str(path)])

        assert result.exit_code == 0, result.output
        assert "2 unique of 3 findings" in result.output
        assert '"title": "Missing null check"' not in result.output
        assert '"file": "b.x"' in result.output

    def test_threshold_override(self, runner, workdir):
        path = workdir / "findings.json"
        findings = [
            {"file": "a.x", "startLine": 1, "title": "alpha beta gamma"},
            {"file": "a.x", "startLine": 1, "endLine": 2, "title": "alpha beta delta"},
        ]
        path.write_text(json.dumps(findings), encoding="utf-8")

        assert "2 unique of 2 findings" in runner.invoke(cli, ["dedupe", str(path)]).output
        result = runner.invoke(cli, ["dedupe", str(path), "--threshold", "0.5"])
        assert "1 unique of 2 findings" in result.output

    def test_invalid_json(self, runner, workdir):
        path = workdir / "findings.json"
        path.write_text("{not json", encoding="utf-8")

        result = runner.invoke(cli, ["dedupe", str(path)])

        assert result.exit_code != 0
        assert "Cannot read findings" in result.output

    def test_not_an_array(self, runner, workdir):
        path = workdir / "findings.json"
        path.write_text('{"file": "a.x"}', encoding="utf-8")

        result = runner.invoke(cli, ["dedupe", str(path)])

        assert result.exit_code != 0
        assert "must contain a JSON array" in result.output

    def test_invalid_finding(self, runner, workdir):
        path = workdir / "findings.json"
        path.write_text(json.dumps([{"file": "a.x", "title": "No line"}]), encoding="utf-8")

        result = runner.invoke(cli, ["dedupe", str(path)])

        assert result.exit_code != 0
        assert "Invalid finding" in result.output


class TestReviewCommand:
    """Tests for review command"""

    @patch("selfreview.cli.GitDiffSource")
    def test_review_markdown(self, mock_source_class, runner):
        mock_source = mock_source_class.return_value
        mock_source.diff.return_value = SAMPLE_DIFF

        result = runner.invoke(cli, ["review", "--base", "main", "--analyzer", "mock"])

        assert result.exit_code == 0, result.output
        mock_source.diff.assert_called_once_with("main", "", True)
        mock_source.resolve_contents.assert_called_once()
        assert "# Self Review: main..HEAD + working tree" in result.output
        assert "Review new code in app/controllers/users_controller.rb" in result.output
        assert "Review completed: 2 findings in 2 files" in result.output

    @patch("selfreview.cli.GitDiffSource")
    def test_review_json_to_file(self, mock_source_class, runner, workdir):
        mock_source_class.return_value.diff.return_value = SAMPLE_DIFF
        output = workdir / "report.json"

        result = runner.invoke(
            cli, ["review", "--target", "feature", "--format", "json", "--output", str(output)]
        )

        assert result.exit_code == 0, result.output
        mock_source_class.return_value.diff.assert_called_once_with("develop", "feature", True)
        data = json.loads(output.read_text(encoding="utf-8"))
        assert sorted(entry["file"] for entry in data) == [
            "app/controllers/users_controller.rb",
            "app/models/user.rb",
        ]
        assert f"Report written to {output}" in result.output

    @patch("selfreview.cli.GitDiffSource")
    def test_review_no_changes(self, mock_source_class, runner):
        mock_source_class.return_value.diff.return_value = ""

        result = runner.invoke(cli, ["review"])

        assert result.exit_code == 0, result.output
        assert "Review completed: 0 findings" in result.output

    @patch("selfreview.cli.GitDiffSource")
    def test_git_error(self, mock_source_class, runner):
        mock_source_class.return_value.diff.side_effect = DiffSourceError("git merge-base failed: bad ref")

        result = runner.invoke(cli, ["review"])

        assert result.exit_code == 1
        assert "bad ref" in result.output

    @patch("selfreview.cli.GitDiffSource")
    def test_unknown_analyzer(self, mock_source_class, runner):
        result = runner.invoke(cli, ["review", "--analyzer", "gpt"])

        assert result.exit_code == 2
        assert "Invalid value for '--analyzer'" in result.output
        mock_source_class.return_value.diff.assert_not_called()

    @patch("selfreview.cli.GitDiffSource")
    def test_command_analyzer_without_command(self, mock_source_class, runner):
        mock_source_class.return_value.diff.return_value = SAMPLE_DIFF

        result = runner.invoke(cli, ["review", "--analyzer", "COMMAND"])

        assert result.exit_code == 1
        assert "requires a non-empty 'command' list" in result.output


class TestInitCommand:
    """Tests for init command"""

    def test_writes_sample_config(self, runner, workdir):
        result = runner.invoke(cli, ["init"])

        assert result.exit_code == 0, result.output
        assert (workdir / CONFIG_FILENAME).read_text(encoding="utf-8").startswith("# Self Review configuration")

    def test_refuses_to_overwrite(self, runner, workdir):
        (workdir / CONFIG_FILENAME).write_text("review: {}\n", encoding="utf-8")

        result = runner.invoke(cli, ["init"])

        assert result.exit_code != 0
        assert "already exists" in result.output
        assert (workdir / CONFIG_FILENAME).read_text(encoding="utf-8") == "review: {}\n"

    def test_force_overwrites(self, runner, workdir):
        (workdir / CONFIG_FILENAME).write_text("review: {}\n", encoding="utf-8")

        result = runner.invoke(cli, ["init", "--force"])

        assert result.exit_code == 0, result.output
        assert "token_budget" in (workdir / CONFIG_FILENAME).read_text(encoding="utf-8")
