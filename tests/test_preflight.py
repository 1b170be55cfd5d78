"""Tests for preflight checks."""

from unittest.mock import patch

from click.testing import CliRunner

from plugmatrix.cli import main
from plugmatrix.config.preflight import check_ecosystems, check_generator, run_all_checks
from plugmatrix.config.schema import DEFAULT_CONFIG, PlugmatrixConfig


def _which(*available: str):
    return lambda command: f"/usr/bin/{command}" if command in available else None


def test_preflight_help() -> None:
    """Test that the preflight command exists and has help."""
    runner = CliRunner()
    result = runner.invoke(main, ["preflight", "--help"])
    assert result.exit_code == 0
    assert "Validate environment" in result.output


def test_check_generator() -> None:
    with patch("plugmatrix.config.preflight.shutil.which", _which("oclif")):
        assert check_generator(DEFAULT_CONFIG) is True
    with patch("plugmatrix.config.preflight.shutil.which", _which()):
        assert check_generator(DEFAULT_CONFIG) is False


def test_check_ecosystems_needs_one_package_manager() -> None:
    with patch("plugmatrix.config.preflight.shutil.which", _which("pnpm")):
        assert check_ecosystems(DEFAULT_CONFIG) is True
    with patch("plugmatrix.config.preflight.shutil.which", _which("corepack")):
        assert check_ecosystems(DEFAULT_CONFIG) is False


def test_check_ecosystems_uses_command_overrides() -> None:
    config = PlugmatrixConfig(commands={"npm": "npm10"})
    with patch("plugmatrix.config.preflight.shutil.which", _which("npm10")):
        assert check_ecosystems(config) is True


def test_run_all_checks() -> None:
    with patch("plugmatrix.config.preflight.shutil.which", _which("oclif", "npm")):
        assert run_all_checks(DEFAULT_CONFIG) is True
    with patch("plugmatrix.config.preflight.shutil.which", _which("npm")):
        assert run_all_checks(DEFAULT_CONFIG) is False


def test_preflight_command_exit_code() -> None:
    runner = CliRunner()
    with (
        patch("plugmatrix.cli.load_config", return_value=DEFAULT_CONFIG),
        patch("plugmatrix.config.preflight.shutil.which", _which()),
    ):
        result = runner.invoke(main, ["preflight"])
    assert result.exit_code == 1
    assert "No package managers detected" in result.output
