"""
Tests for the sync driver, CLI error handling and the CLI commands.
"""

import json
from unittest.mock import patch

import httpx
import pytest
import typer
from typer.testing import CliRunner

from cookbookfs.cli import app
from cookbookfs.decorators import handle_fs_errors
from cookbookfs.exceptions import (
    CookbookFrozenError,
    FileSystemError,
    NotFoundError,
    OperationNotAllowedError,
)
from cookbookfs.sync import select_cookbooks, upload_cookbooks
from cookbookfs.vfs import RepositoryRootNode, ServerRootNode, UploadOptions


runner = CliRunner()


@pytest.fixture
def local_cookbooks(repo):
    return RepositoryRootNode(repo).make_child_entry("cookbooks")


@pytest.fixture
def remote_cookbooks(fake_server):
    return ServerRootNode(fake_server.api()).make_child_entry("cookbooks")


# ============================================================================
# SYNC
# ============================================================================

class TestSelectCookbooks:
    """Test choosing which cookbooks to upload."""

    def test_all_by_default(self, local_cookbooks):
        assert [c.name for c in select_cookbooks(local_cookbooks)] == ["apache2", "mysql"]

    def test_named(self, local_cookbooks):
        assert [c.name for c in select_cookbooks(local_cookbooks, ["mysql"])] == ["mysql"]

    def test_unknown_name(self, local_cookbooks):
        with pytest.raises(NotFoundError, match="nginx"):
            select_cookbooks(local_cookbooks, ["nginx"])


class TestUploadCookbooks:
    """Test uploading a local cookbooks directory to the server."""

    def test_uploads_everything(self, fake_server, local_cookbooks, remote_cookbooks):
        results = upload_cookbooks(local_cookbooks, remote_cookbooks)

        assert [(r.name, r.ok) for r in results] == [("apache2", True), ("mysql", True)]
        assert set(fake_server.manifests) == {"/cookbooks/apache2/1.0.0", "/cookbooks/mysql/2.1.0"}

    def test_passes_options(self, fake_server, local_cookbooks, remote_cookbooks):
        upload_cookbooks(local_cookbooks, remote_cookbooks, ["apache2"], UploadOptions(freeze=True))

        assert fake_server.manifests["/cookbooks/apache2/1.0.0"]["frozen?"] is True

    def test_failures_are_per_cookbook(self, fake_server, local_cookbooks, remote_cookbooks):
        fake_server.cookbook_status = 409

        results = upload_cookbooks(local_cookbooks, remote_cookbooks)

        assert [r.ok for r in results] == [False, False]
        assert all(isinstance(r.error, CookbookFrozenError) for r in results)

    def test_read_only_destination(self, repo, local_cookbooks):
        other = RepositoryRootNode(repo).make_child_entry("cookbooks")

        results = upload_cookbooks(local_cookbooks, other, ["apache2"])

        assert results[0].ok is False
        assert isinstance(results[0].error, OperationNotAllowedError)

    def test_other_errors_propagate(self, local_cookbooks, remote_cookbooks):
        with patch.object(remote_cookbooks, "create_child_from", side_effect=RuntimeError("boom")):
            with pytest.raises(RuntimeError):
                upload_cookbooks(local_cookbooks, remote_cookbooks)


# ============================================================================
# ERROR HANDLING DECORATOR
# ============================================================================

def _raising(error):
    @handle_fs_errors
    def command():
        raise error
    return command


class TestHandleFsErrors:
    """Test that CLI errors turn into exit codes."""

    def test_returns_value(self):
        @handle_fs_errors
        def command():
            return 42
        assert command() == 42

    @pytest.mark.parametrize("error", [
        CookbookFrozenError("write", None, reason="Cookbook apache2 is frozen"),
        NotFoundError(None, reason="missing"),
        FileSystemError(None, reason="failed"),
        httpx.ConnectError("refused"),
        RuntimeError("unexpected"),
    ])
    def test_errors_exit_1(self, error):
        with pytest.raises(typer.Exit) as exc_info:
            _raising(error)()
        assert exc_info.value.exit_code == 1

    def test_keyboard_interrupt(self):
        with pytest.raises(typer.Exit) as exc_info:
            _raising(KeyboardInterrupt())()
        assert exc_info.value.exit_code == 130

    def test_exit_passes_through(self):
        with pytest.raises(typer.Exit) as exc_info:
            _raising(typer.Exit(code=3))()
        assert exc_info.value.exit_code == 3


# ============================================================================
# CLI
# ============================================================================

@pytest.fixture
def cli_env(tmp_path, fake_server):
    """Config file in tmp_path and every server client routed to the fake server."""
    config_path = tmp_path / "config" / "config.json"
    with patch("cookbookfs.config.get_config_path", return_value=config_path), \
            patch("cookbookfs.cli._server_api", side_effect=lambda config, url=None: fake_server.api()):
        yield config_path


class TestLsCommand:
    """Tests for the ls command."""

    def test_lists_cookbooks(self, cli_env):
        result = runner.invoke(app, ["ls"])

        assert result.exit_code == 0
        assert "apache2" in result.output
        assert "mysql" in result.output

    def test_missing_directory(self, cli_env):
        result = runner.invoke(app, ["ls", "/roles"])

        assert result.exit_code == 1
        assert "Not found" in result.output


class TestUploadCommand:
    """Tests for the upload command."""

    def test_upload_named(self, cli_env, fake_server, repo):
        result = runner.invoke(app, ["upload", "apache2", "--repo", str(repo)])

        assert result.exit_code == 0
        assert "Uploaded apache2" in result.output
        assert list(fake_server.manifests) == ["/cookbooks/apache2/1.0.0"]

    def test_upload_all_with_force(self, cli_env, fake_server, repo):
        result = runner.invoke(app, ["upload", "--repo", str(repo), "--force"])

        assert result.exit_code == 0
        for request in fake_server.requests:
            if request.method == "PUT" and request.url.path.startswith("/cookbooks/"):
                assert request.url.params["force"] == "true"

    def test_frozen_version(self, cli_env, fake_server, repo):
        fake_server.cookbook_status = 409

        result = runner.invoke(app, ["upload", "apache2", "--repo", str(repo)])

        assert result.exit_code == 1
        assert "--force" in result.output

    def test_unknown_cookbook(self, cli_env, repo):
        result = runner.invoke(app, ["upload", "nginx", "--repo", str(repo)])

        assert result.exit_code == 1
        assert "Not found" in result.output


class TestConfigCommand:
    """Tests for the config command."""

    def test_show(self, cli_env):
        result = runner.invoke(app, ["config", "--show"])

        assert result.exit_code == 0
        assert "Staging Settings" in result.output

    def test_set_values(self, cli_env):
        result = runner.invoke(app, [
            "config", "--server-url", "https://chef.internal", "--staging-mode", "copy",
        ])

        assert result.exit_code == 0
        data = json.loads(cli_env.read_text())
        assert data["server"]["url"] == "https://chef.internal"
        assert data["staging"]["mode"] == "copy"

    def test_rejects_unknown_staging_mode(self, cli_env):
        result = runner.invoke(app, ["config", "--staging-mode", "hardlink"])

        assert result.exit_code == 1
        assert not cli_env.exists()
