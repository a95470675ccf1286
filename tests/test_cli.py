"""
Tests for the doppelganger command.

Uses Click's CliRunner; the server loop itself is patched out so only
option parsing, settings and service wiring are exercised.
"""

from __future__ import annotations

from unittest import mock

from click.testing import CliRunner

from doppelganger import BUILD_DATE, __version__
from doppelganger.config import TOKEN_ENV
from doppelganger.main import cli


def _invoke(args, env=None):
    runner = CliRunner()
    env_vars = {TOKEN_ENV: "secret"} if env is None else env
    with mock.patch("doppelganger.git.executor.shutil.which", return_value="/usr/bin/git"):
        return runner.invoke(cli, args, env=env_vars)


class TestVersion:

    def test_prints_version(self):
        result = _invoke(["--version"], env={TOKEN_ENV: ""})
        assert result.exit_code == 0
        assert result.output.strip() == f"Doppelganger, version {__version__}, build date {BUILD_DATE}"


class TestStartupFailures:

    def test_missing_token(self):
        with mock.patch("doppelganger.main.run_server") as run:
            result = _invoke([], env={TOKEN_ENV: ""})
        assert result.exit_code == 1
        assert "Missing GitHub access token" in result.output
        run.assert_not_called()

    def test_missing_git(self):
        runner = CliRunner()
        with mock.patch("doppelganger.git.executor.shutil.which", return_value=None), \
                mock.patch("doppelganger.main.run_server") as run:
            result = runner.invoke(cli, [], env={TOKEN_ENV: "secret"})
        assert result.exit_code == 1
        assert "git is not found in PATH" in result.output
        run.assert_not_called()

    def test_bad_port_is_usage_error(self):
        result = _invoke(["--port", "http"])
        assert result.exit_code == 2

    def test_bind_failure(self):
        with mock.patch("doppelganger.main.run_server", side_effect=OSError("Address already in use")):
            result = _invoke(["--port", "9000"])
        assert result.exit_code == 1
        assert "cannot listen on :9000" in result.output


class TestServe:

    def test_flags_override_environment(self, tmp_path):
        env = {TOKEN_ENV: "secret", "DOPPELGANGER_PORT": "7000", "DOPPELGANGER_MIRROR_DIR": "/nope"}
        with mock.patch("doppelganger.main.run_server") as run:
            result = _invoke(["--addr", "127.0.0.1", "--port", "9000", "--mirror", str(tmp_path)], env=env)

        assert result.exit_code == 0, result.output
        app, host, port = run.call_args[0]
        assert (host, port) == ("127.0.0.1", 9000)
        assert app.config["SERVICES"].settings.mirror_dir == tmp_path

    def test_private_key_shared_by_git_and_key_store(self, tmp_path):
        key = tmp_path / "deploy_key"
        env = {TOKEN_ENV: "secret", "DOPPELGANGER_PRIVATE_KEY": str(key)}
        with mock.patch("doppelganger.main.run_server") as run:
            result = _invoke([], env=env)

        assert result.exit_code == 0, result.output
        services = run.call_args[0][0].config["SERVICES"]
        assert services.keys.private_key_path == key
        assert services.mirrors.git.ssh_key == key

    def test_listens_on_all_interfaces_by_default(self):
        with mock.patch("doppelganger.main.run_server") as run:
            result = _invoke([])
        assert result.exit_code == 0, result.output
        assert run.call_args[0][1:] == ("0.0.0.0", 8081)

    def test_tracking_disabled(self):
        env = {TOKEN_ENV: "secret", "DOPPELGANGER_TRACKING": "false"}
        with mock.patch("doppelganger.main.run_server") as run:
            _invoke([], env=env)
        assert run.call_args[0][0].config["SERVICES"].tracker is None
