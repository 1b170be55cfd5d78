"""Tests for the CLI."""

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from plugmatrix import __version__
from plugmatrix.cli import main
from plugmatrix.config.schema import DEFAULT_CONFIG, PlugmatrixConfig
from plugmatrix.generation import (
    BatchOutcome,
    EcosystemSetupError,
    PluginExistsError,
    TaskOutcome,
)
from plugmatrix.publishing import PublishResult


def test_cli_help() -> None:
    """Test that --help exits cleanly."""
    runner = CliRunner()
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "generate-matrix" in result.output


def test_cli_version() -> None:
    """Test that --version shows the version."""
    runner = CliRunner()
    result = runner.invoke(main, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


class TestGenerateCommand:
    """Tests for `plugmatrix generate`."""

    def test_generate_success(self, tmp_path: Path) -> None:
        runner = CliRunner()
        with (
            patch("plugmatrix.cli.load_config", return_value=DEFAULT_CONFIG),
            patch("plugmatrix.cli.generate_plugin", new_callable=AsyncMock) as generate,
        ):
            result = runner.invoke(
                main, ["generate", "-m", "npm", "--shrinkwrap", "-d", str(tmp_path)]
            )

        assert result.exit_code == 0, result.output
        assert "Success!" in result.output
        task, config = generate.call_args.args
        assert task.name == "test-plugin-npm_shrinkwrap"
        assert task.directory == tmp_path
        assert config is DEFAULT_CONFIG

    def test_generate_uses_configured_output_directory(self, tmp_path: Path) -> None:
        runner = CliRunner()
        config = DEFAULT_CONFIG.merge(PlugmatrixConfig(output_directory=str(tmp_path)))
        with (
            patch("plugmatrix.cli.load_config", return_value=config),
            patch("plugmatrix.cli.generate_plugin", new_callable=AsyncMock) as generate,
        ):
            result = runner.invoke(main, ["generate", "-m", "pnpm"])

        assert result.exit_code == 0, result.output
        assert generate.call_args.args[0].directory == tmp_path

    def test_generate_rejects_bad_combination(self) -> None:
        runner = CliRunner()
        with (
            patch("plugmatrix.cli.load_config", return_value=DEFAULT_CONFIG),
            patch("plugmatrix.cli.generate_plugin", new_callable=AsyncMock) as generate,
        ):
            result = runner.invoke(main, ["generate", "-m", "pnpm", "--shrinkwrap"])

        assert result.exit_code == 2
        assert "shrinkwrap" in result.output
        generate.assert_not_called()

    def test_generate_requires_package_manager(self) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["generate"])
        assert result.exit_code == 2

    def test_generate_existing_plugin(self, tmp_path: Path) -> None:
        runner = CliRunner()
        error = PluginExistsError("test-plugin-npm", tmp_path / "test-plugin-npm")
        with (
            patch("plugmatrix.cli.load_config", return_value=DEFAULT_CONFIG),
            patch("plugmatrix.cli.generate_plugin", new=AsyncMock(side_effect=error)),
        ):
            result = runner.invoke(main, ["generate", "-m", "npm", "-d", str(tmp_path)])

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_generate_setup_error_shows_suggestions(self, tmp_path: Path) -> None:
        runner = CliRunner()
        error = EcosystemSetupError("boom", suggestions=("is yarn installed globally?",))
        with (
            patch("plugmatrix.cli.load_config", return_value=DEFAULT_CONFIG),
            patch("plugmatrix.cli.generate_plugin", new=AsyncMock(side_effect=error)),
        ):
            result = runner.invoke(
                main, ["generate", "-m", "yarn", "--yarn-version", "4.x", "-d", str(tmp_path)]
            )

        assert result.exit_code == 1
        assert "Try this:" in result.output
        assert "is yarn installed globally?" in result.output


class TestGenerateMatrixCommand:
    """Tests for `plugmatrix generate-matrix`."""

    def _matrix(self, tmp_path: Path, rows: list) -> Path:
        path = tmp_path / "matrix.json"
        path.write_text(json.dumps(rows))
        return path

    def test_success(self, tmp_path: Path) -> None:
        matrix = self._matrix(tmp_path, [{"package-manager": "npm"}])
        outcome = BatchOutcome(
            [TaskOutcome("test-plugin-npm", tmp_path / "test-plugin-npm", 0, True)],
            groups=1,
        )
        runner = CliRunner()
        with (
            patch("plugmatrix.cli.load_config", return_value=DEFAULT_CONFIG),
            patch("plugmatrix.cli.run_matrix", new=AsyncMock(return_value=outcome)) as run,
        ):
            result = runner.invoke(
                main,
                ["generate-matrix", "-m", str(matrix), "-d", str(tmp_path), "-c", "2"],
            )

        assert result.exit_code == 0, result.output
        assert "Generated 1 plugins" in result.output
        assert run.call_args.kwargs["concurrency"] == 2
        assert run.call_args.args[1] == tmp_path

    def test_failure_exit_code(self, tmp_path: Path) -> None:
        matrix = self._matrix(tmp_path, [{"package-manager": "npm"}])
        outcome = BatchOutcome(
            [
                TaskOutcome(
                    "test-plugin-npm",
                    tmp_path / "test-plugin-npm",
                    0,
                    False,
                    RuntimeError("boom"),
                )
            ],
            groups=1,
        )
        runner = CliRunner()
        with (
            patch("plugmatrix.cli.load_config", return_value=DEFAULT_CONFIG),
            patch("plugmatrix.cli.run_matrix", new=AsyncMock(return_value=outcome)),
        ):
            result = runner.invoke(main, ["generate-matrix", "-m", str(matrix)])

        assert result.exit_code == 1
        assert "1 of 1 plugins failed" in result.output

    def test_invalid_matrix(self, tmp_path: Path) -> None:
        matrix = self._matrix(tmp_path, {"package-manager": "npm"})
        runner = CliRunner()
        with patch("plugmatrix.cli.load_config", return_value=DEFAULT_CONFIG):
            result = runner.invoke(main, ["generate-matrix", "-m", str(matrix)])

        assert result.exit_code == 1
        assert "Invalid matrix" in result.output

    def test_rejects_zero_concurrency(self, tmp_path: Path) -> None:
        matrix = self._matrix(tmp_path, [])
        runner = CliRunner()
        result = runner.invoke(main, ["generate-matrix", "-m", str(matrix), "-c", "0"])
        assert result.exit_code == 2


class TestPublishCommand:
    """Tests for `plugmatrix publish`."""

    def test_requires_exactly_one_source(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(main, ["publish"])
        assert result.exit_code == 2

        result = runner.invoke(
            main, ["publish", "-d", str(tmp_path), "-p", str(tmp_path)]
        )
        assert result.exit_code == 2

    def test_rejects_remote_registry(self, tmp_path: Path) -> None:
        runner = CliRunner()
        with (
            patch("plugmatrix.cli.load_config", return_value=DEFAULT_CONFIG),
            patch("plugmatrix.cli.publish_plugins", new_callable=AsyncMock) as publish,
        ):
            result = runner.invoke(
                main,
                ["publish", "-p", str(tmp_path), "-r", "https://registry.npmjs.org"],
            )

        assert result.exit_code == 2
        assert "localhost" in result.output
        publish.assert_not_called()

    def test_publishes_directory(self, tmp_path: Path) -> None:
        (tmp_path / "a").mkdir()
        (tmp_path / "b").mkdir()
        runner = CliRunner()
        with (
            patch("plugmatrix.cli.load_config", return_value=DEFAULT_CONFIG),
            patch(
                "plugmatrix.cli.publish_plugins",
                new=AsyncMock(return_value=PublishResult(published=["@oclif/a", "@oclif/b"])),
            ) as publish,
        ):
            result = runner.invoke(
                main, ["publish", "-d", str(tmp_path), "--dry-run", "--no-clear-registry"]
            )

        assert result.exit_code == 0, result.output
        assert publish.call_args.args[0] == [tmp_path / "a", tmp_path / "b"]
        kwargs = publish.call_args.kwargs
        assert kwargs["registry"] == "http://localhost:4873/"
        assert kwargs["dry_run"] is True
        assert kwargs["clear_registry_first"] is False

    def test_failed_plugin_exit_code(self, tmp_path: Path) -> None:
        runner = CliRunner()
        with (
            patch("plugmatrix.cli.load_config", return_value=DEFAULT_CONFIG),
            patch(
                "plugmatrix.cli.publish_plugins",
                new=AsyncMock(return_value=PublishResult(failed=["@oclif/p"])),
            ),
        ):
            result = runner.invoke(main, ["publish", "-p", str(tmp_path)])

        assert result.exit_code == 1
        assert "@oclif/p" in result.output


def test_config_command_shows_effective_config() -> None:
    runner = CliRunner()
    with (
        patch("plugmatrix.cli.load_config", return_value=DEFAULT_CONFIG),
        patch("plugmatrix.cli.home_config_exists", return_value=False),
        patch("plugmatrix.cli.local_config_exists", return_value=False),
    ):
        result = runner.invoke(main, ["config"])

    assert result.exit_code == 0
    assert "scope: oclif" in result.output
    assert "Global config: not found" in result.output
