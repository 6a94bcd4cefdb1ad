"""Tests for the command line entry point."""

from unittest.mock import patch

import pytest
from azure.core.exceptions import HttpResponseError

from azure_vm_sample import cli
from azure_vm_sample.config import REQUIRED_ENV_VARS


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Run from an empty directory so no config.yaml or .env.secret is picked up"""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("azure_vm_sample.cli.setup_logging") as mock:
        yield mock


class TestMain:
    """Test exit codes and wiring of main()."""

    @pytest.mark.parametrize("missing", REQUIRED_ENV_VARS)
    def test_missing_env_var_exits_before_any_client(self, azure_env, monkeypatch, workdir,
                                                     capsys, missing):
        monkeypatch.delenv(missing)

        with patch("azure_vm_sample.cli.create_clients") as mock_create:
            assert cli.main(['--yes']) == 1

        mock_create.assert_not_called()
        assert missing in capsys.readouterr().out

    def test_successful_run(self, azure_env, workdir, mock_clients, call_names, capsys):
        with patch("azure_vm_sample.cli.create_clients", return_value=mock_clients):
            assert cli.main(['--yes']) == 0

        assert call_names()[-1] == 'resource.resource_groups.begin_delete'
        assert "2 VM(s) created, 2 deleted" in capsys.readouterr().out

    def test_prompt_before_teardown(self, azure_env, workdir, mock_clients, call_names):
        with patch("azure_vm_sample.cli.create_clients", return_value=mock_clients), \
                patch("builtins.input", return_value="yes") as mock_input:
            assert cli.main([]) == 0

        mock_input.assert_called_once()
        assert 'resource.resource_groups.begin_delete' in call_names()

    def test_declined_prompt_keeps_resources(self, azure_env, workdir, mock_clients, call_names):
        with patch("azure_vm_sample.cli.create_clients", return_value=mock_clients), \
                patch("builtins.input", return_value="no"):
            assert cli.main([]) == 0

        assert 'compute.virtual_machines.begin_delete' not in call_names()
        assert 'resource.resource_groups.begin_delete' not in call_names()

    def test_malformed_config_yaml_exits_1(self, azure_env, workdir, capsys):
        (workdir / 'config.yaml').write_text("vms: [unclosed\n")

        with patch("azure_vm_sample.cli.create_clients") as mock_create:
            assert cli.main(['--yes']) == 1

        mock_create.assert_not_called()
        out = capsys.readouterr().out
        assert "❌ Error: Invalid config.yaml" in out

    def test_admin_password_not_logged(self, azure_env, workdir, mock_clients, caplog):
        (workdir / '.env.secret').write_text("ADMIN_USERNAME=azureuser\nADMIN_PASSWORD=TopSecret-42\n")

        with patch("azure_vm_sample.cli.create_clients", return_value=mock_clients), \
                caplog.at_level('DEBUG'):
            assert cli.main(['--yes']) == 0

        assert "ssh azureuser@" in caplog.text
        assert "TopSecret-42" not in caplog.text

    def test_no_teardown(self, azure_env, workdir, mock_clients, call_names):
        with patch("azure_vm_sample.cli.create_clients", return_value=mock_clients), \
                patch("builtins.input") as mock_input:
            assert cli.main(['--no-teardown']) == 0

        mock_input.assert_not_called()
        assert 'resource.resource_groups.begin_delete' not in call_names()

    def test_remote_failure_exits_1(self, azure_env, workdir, mock_clients, azure_parent, capsys):
        azure_parent.resource.resource_groups.create_or_update.side_effect = HttpResponseError(
            message="AuthorizationFailed"
        )

        with patch("azure_vm_sample.cli.create_clients", return_value=mock_clients):
            assert cli.main(['--yes']) == 1

        assert "❌ Error: AuthorizationFailed" in capsys.readouterr().out

    def test_continue_on_error_still_exits_0(self, azure_env, workdir, mock_clients, azure_parent, capsys):
        azure_parent.compute.virtual_machines.begin_start.side_effect = HttpResponseError(message="boom")

        with patch("azure_vm_sample.cli.create_clients", return_value=mock_clients):
            assert cli.main(['--yes', '--continue-on-error', '--parallel']) == 0

        assert "Some operations failed on: linuxVM, windowsVM" in capsys.readouterr().out

    def test_invalid_config_exits_1(self, azure_env, workdir, capsys):
        (workdir / 'config.yaml').write_text("vms:\n  - name: vm1\n    publisher: p\n    offer: o\n    sku: s\n")

        with patch("azure_vm_sample.cli.create_clients") as mock_create:
            assert cli.main(['--yes']) == 1

        mock_create.assert_not_called()
        assert "at least 5 characters" in capsys.readouterr().out


def test_confirm_teardown_declines_on_eof():
    with patch("builtins.input", side_effect=EOFError):
        assert cli.confirm_teardown() is False


@pytest.mark.parametrize("answer, expected", [
    ("yes", True),
    ("YES ", True),
    ("", False),
    ("y", False),
    ("no", False),
])
def test_confirm_teardown_requires_yes(answer, expected):
    with patch("builtins.input", return_value=answer):
        assert cli.confirm_teardown() is expected
