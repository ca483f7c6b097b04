"""CLI integration tests for maiass."""

import json
import tomllib
from pathlib import Path

import pytest
from typer.testing import CliRunner

from maiass.cli import app


def _json(output: str) -> dict:
    return json.loads(output)


@pytest.mark.cli
class TestVersionFlag:
    """Tests for --version flag."""

    def test_version_shows_version(self, runner: CliRunner) -> None:
        """--version should display version string."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "maiass" in result.stdout
        assert "0.1.0" in result.stdout

    def test_version_short_flag(self, runner: CliRunner) -> None:
        """-V should also display version."""
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert "maiass" in result.stdout


@pytest.mark.cli
class TestHelpCommand:
    """Tests for --help flag."""

    def test_help_shows_commands(self, runner: CliRunner) -> None:
        """--help should list all available commands."""
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("release", "commit", "version", "git-info", "init", "config"):
            assert command in result.stdout

    def test_no_args_shows_help(self, runner: CliRunner) -> None:
        """Running with no args should show help (exit code 2 for no_args_is_help)."""
        result = runner.invoke(app, [])
        assert result.exit_code == 2
        assert "Usage:" in result.stdout

    def test_release_help_lists_flags(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["release", "--help"])
        assert result.exit_code == 0
        for flag in ("--commits-only", "--auto-stage", "--dry-run", "--force", "--silent", "--tag"):
            assert flag in result.stdout


@pytest.mark.cli
class TestNotARepo:
    """Commands outside a repository exit with code 3."""

    @pytest.mark.parametrize(
        "args", [["release"], ["commit"], ["version"], ["git-info"], ["init"], ["config"]]
    )
    def test_exit_code(
        self, runner: CliRunner, tmp_path: Path, monkeypatch: pytest.MonkeyPatch, args: list[str]
    ) -> None:
        plain = tmp_path / "plain"
        plain.mkdir()
        monkeypatch.chdir(plain)
        monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))

        result = runner.invoke(app, args)

        assert result.exit_code == 3


@pytest.mark.cli
class TestInitCommand:
    """Tests for maiass init command."""

    def test_creates_template(self, runner: CliRunner, temp_git_repo: Path) -> None:
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        content = (temp_git_repo / ".maiass.toml").read_text()
        assert "[branches]" in content
        assert 'develop = "develop"' in content
        assert "token" not in content

    def test_already_exists(self, runner: CliRunner, temp_git_repo: Path) -> None:
        (temp_git_repo / ".maiass.toml").write_text("[git]\nremote = \"upstream\"\n")
        result = runner.invoke(app, ["init"])
        assert result.exit_code == 0
        assert "already exists" in result.output
        assert (temp_git_repo / ".maiass.toml").read_text() == "[git]\nremote = \"upstream\"\n"

    def test_invalid_config_fails_other_commands(
        self, runner: CliRunner, temp_git_repo: Path
    ) -> None:
        (temp_git_repo / ".maiass.toml").write_text("[version\n")
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 1


@pytest.mark.cli
class TestGitInfoCommand:
    def test_json(self, runner: CliRunner, develop_repo: Path, git_cmd) -> None:
        git_cmd("checkout", "-b", "feature/ABC-42-search")
        (develop_repo / "new.txt").write_text("new")

        result = runner.invoke(app, ["--json", "git-info"])

        assert result.exit_code == 0
        data = _json(result.stdout)
        assert data["branch"] == "feature/ABC-42-search"
        assert data["role"] == "feature"
        assert data["ticket"] == "ABC-42"
        assert data["author"] == "Test User"
        assert data["untracked"] == 1
        assert data["clean"] is False
        assert data["remote"] is None

    def test_text(self, runner: CliRunner, temp_git_repo: Path) -> None:
        result = runner.invoke(app, ["--no-color", "git-info"])
        assert result.exit_code == 0
        assert "master" in result.output


@pytest.mark.cli
class TestVersionCommand:
    """Tests for maiass version."""

    def test_show_json(self, runner: CliRunner, temp_git_repo: Path, write_manifest) -> None:
        write_manifest("1.2.3")
        result = runner.invoke(app, ["--json", "version"])
        assert result.exit_code == 0
        data = _json(result.stdout)
        assert data["version"] == "1.2.3"
        assert data["source"] == "package.json"
        assert data["latest_tag"] is None
        assert data["files"] == [
            {"file": "package.json", "kind": "manifest-json", "version": "1.2.3"}
        ]

    def test_bump_writes_files(self, runner: CliRunner, temp_git_repo: Path, write_manifest) -> None:
        manifest = write_manifest("1.2.3")
        result = runner.invoke(app, ["--json", "version", "minor"])
        assert result.exit_code == 0
        data = _json(result.stdout)
        assert data["new_version"] == "1.3.0"
        assert data["files"] == ["package.json"]
        assert json.loads(manifest.read_text())["version"] == "1.3.0"

    def test_dry_run(self, runner: CliRunner, temp_git_repo: Path, write_manifest) -> None:
        manifest = write_manifest("1.2.3")
        result = runner.invoke(app, ["--json", "version", "patch", "--dry-run"])
        assert result.exit_code == 0
        assert _json(result.stdout) == {
            "previous_version": "1.2.3",
            "new_version": "1.2.4",
            "dry_run": True,
        }
        assert json.loads(manifest.read_text())["version"] == "1.2.3"

    def test_tag(self, runner: CliRunner, temp_git_repo: Path, write_manifest, git_cmd) -> None:
        write_manifest("1.2.3")
        result = runner.invoke(app, ["version", "patch", "--tag"])
        assert result.exit_code == 0
        assert git_cmd("tag", "-l") == "1.2.4"

    def test_bump_without_version_fails(self, runner: CliRunner, temp_git_repo: Path) -> None:
        result = runner.invoke(app, ["version", "patch"])
        assert result.exit_code == 1

    def test_force_starts_at_initial_version(
        self, runner: CliRunner, temp_git_repo: Path
    ) -> None:
        result = runner.invoke(app, ["--json", "version", "patch", "--force", "--dry-run"])
        assert result.exit_code == 0
        assert _json(result.stdout)["new_version"] == "1.0.0"

    def test_explicit_version_tag_without_files(
        self, runner: CliRunner, temp_git_repo: Path, git_cmd
    ) -> None:
        result = runner.invoke(app, ["version", "2.0.0", "--tag"])
        assert result.exit_code == 0
        assert git_cmd("tag", "-l") == "2.0.0"

    def test_invalid_bump(self, runner: CliRunner, temp_git_repo: Path, write_manifest) -> None:
        write_manifest("1.2.3")
        result = runner.invoke(app, ["version", "huge"])
        assert result.exit_code == 1


@pytest.mark.cli
class TestConfigCommand:
    """Tests for maiass config."""

    TOKEN = "sk-test-abcdef1234"

    @pytest.fixture
    def configured(self, temp_git_repo: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        (temp_git_repo / ".maiass.toml").write_text('[git]\nremote = "upstream"\n')
        monkeypatch.setenv("MAIASS_AI_TOKEN", self.TOKEN)
        return temp_git_repo

    def _by_key(self, output: str) -> dict[str, dict]:
        return {entry["key"]: entry for entry in _json(output)["config"]}

    def test_show_reports_sources(self, runner: CliRunner, configured: Path) -> None:
        result = runner.invoke(app, ["--json", "config"])

        assert result.exit_code == 0, result.output
        entries = self._by_key(result.stdout)
        assert entries["git.remote"] == {
            "key": "git.remote",
            "value": "upstream",
            "source": "file",
            "env_var": None,
        }
        assert entries["ai.token"]["source"] == "env"
        assert entries["ai.token"]["value"] == "***1234"
        assert entries["branches.develop"]["source"] == "default"
        assert entries["branches.develop"]["env_var"] == "MAIASS_DEVELOPBRANCH"

    def test_show_sensitive(self, runner: CliRunner, configured: Path) -> None:
        result = runner.invoke(app, ["--json", "config", "ai.token", "--show-sensitive"])
        assert result.exit_code == 0
        assert _json(result.stdout)["value"] == self.TOKEN

    def test_text_output_masks_token(self, runner: CliRunner, configured: Path) -> None:
        result = runner.invoke(app, ["--no-color", "config", "ai.token"])
        assert result.exit_code == 0
        assert "***1234" in result.output
        assert self.TOKEN not in result.output

    def test_get_by_variable_name(self, runner: CliRunner, configured: Path) -> None:
        result = runner.invoke(app, ["--json", "config", "MAIASS_PATCH_TAGGING"])
        assert result.exit_code == 0
        assert _json(result.stdout) == {
            "key": "version.patch_tagging",
            "value": "ask",
            "source": "default",
            "env_var": "MAIASS_PATCH_TAGGING",
        }

    def test_set_writes_file(self, runner: CliRunner, configured: Path) -> None:
        result = runner.invoke(app, ["--json", "config", "version.patch_tagging=all"])

        assert result.exit_code == 0, result.output
        assert _json(result.stdout)["value"] == "all"
        data = tomllib.loads((configured / ".maiass.toml").read_text())
        assert data == {"git": {"remote": "upstream"}, "version": {"patch_tagging": "all"}}

        shown = runner.invoke(app, ["--json", "config", "version.patch_tagging"])
        assert _json(shown.stdout)["source"] == "file"

    def test_set_list_and_bool_values(self, runner: CliRunner, temp_git_repo: Path) -> None:
        assert runner.invoke(
            app, ["config", "version.secondary_files=VERSION, docs/version.txt"]
        ).exit_code == 0
        assert runner.invoke(app, ["config", "MAIASS_DEVLOG_ENABLED=false"]).exit_code == 0

        data = tomllib.loads((temp_git_repo / ".maiass.toml").read_text())
        assert data["version"]["secondary_files"] == ["VERSION", "docs/version.txt"]
        assert data["devlog"]["enabled"] is False

    def test_set_invalid_value(self, runner: CliRunner, configured: Path) -> None:
        result = runner.invoke(app, ["--json", "config", "ai.temperature=hot"])
        assert result.exit_code == 1
        assert "ai.temperature" in _json(result.stdout)["error"]
        assert (configured / ".maiass.toml").read_text() == '[git]\nremote = "upstream"\n'

    def test_set_token_refused(self, runner: CliRunner, temp_git_repo: Path) -> None:
        result = runner.invoke(app, ["config", "ai.token=sk-secret"])
        assert result.exit_code == 1
        assert not (temp_git_repo / ".maiass.toml").exists()

    def test_unknown_key(self, runner: CliRunner, temp_git_repo: Path) -> None:
        result = runner.invoke(app, ["--json", "config", "ai.colour"])
        assert result.exit_code == 1
        assert "Unknown configuration key" in _json(result.stdout)["error"]

    def test_list_vars(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--json", "config", "--list-vars"])
        assert result.exit_code == 0
        keys = {item["key"]: item for item in _json(result.stdout)["keys"]}
        assert keys["ai.token"] == {
            "key": "ai.token",
            "env_var": "MAIASS_AI_TOKEN",
            "default": None,
        }
        assert keys["version.secondary_files"]["default"] == []
        assert keys["ai.timeout"]["env_var"] is None


@pytest.mark.cli
@pytest.mark.slow
class TestReleaseCommand:
    """Tests for maiass release and commit."""

    def test_forced_patch_release(
        self,
        runner: CliRunner,
        develop_repo: Path,
        write_manifest,
        git_cmd,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        manifest = write_manifest("1.2.3")
        monkeypatch.setenv("MAIASS_PATCH_TAGGING", "none")

        result = runner.invoke(app, ["-q", "--json", "release", "patch", "--force"])

        assert result.exit_code == 0, result.output
        data = _json(result.stdout)
        assert data["state"] == "done"
        assert data["new_version"] == "1.2.4"
        assert data["tagged"] is False
        assert json.loads(manifest.read_text())["version"] == "1.2.4"
        assert git_cmd("log", "-1", "--pretty=%s") == "Bumped version to 1.2.4"

    def test_invalid_bump_exit_code(self, runner: CliRunner, develop_repo: Path) -> None:
        result = runner.invoke(app, ["release", "banana"])
        assert result.exit_code == 1

    def test_cancel_on_master_exits_zero(
        self, runner: CliRunner, develop_repo: Path, git_cmd
    ) -> None:
        git_cmd("checkout", "master")
        result = runner.invoke(app, ["release"], input="n\n")
        assert result.exit_code == 0
        assert git_cmd("branch", "--show-current") == "master"

    def test_commit_auto_stage(self, runner: CliRunner, develop_repo: Path, git_cmd) -> None:
        git_cmd("checkout", "-b", "bugfix/OPS-7-crash")
        (develop_repo / "fix.txt").write_text("fix")

        result = runner.invoke(app, ["commit", "--auto-stage"], input="Fix crash\n\n\n\n")

        assert result.exit_code == 0, result.output
        assert git_cmd("log", "-1", "--pretty=%s") == "OPS-7 Fix crash"
        assert git_cmd("branch", "--show-current") == "bugfix/OPS-7-crash"
        assert git_cmd("status", "--porcelain") == ""
