"""
conftest.py
-----------
Fixtures for integration tests that run the CLI against temporary data
directories.
"""
import pytest
from click.testing import CliRunner

from fogfern.cli import cli


@pytest.fixture
def runner():
    """Create Click test runner."""
    return CliRunner()


@pytest.fixture
def cli_dirs(tmp_path, data_dir, dataset_path):
    """Paths passed to every CLI invocation."""
    logs = tmp_path / "logs"
    logs.mkdir()
    return {"data_dir": data_dir, "dataset": dataset_path, "log_dir": logs}


@pytest.fixture
def invoke(runner, cli_dirs):
    """Invoke the CLI with the test directories prepended."""

    def _invoke(args, **kwargs):
        base_args = [
            "--data-dir", str(cli_dirs["data_dir"]),
            "--dataset", str(cli_dirs["dataset"]),
            "--log-dir", str(cli_dirs["log_dir"]),
        ]
        kwargs.setdefault("env", {"FOGFERN_CLOUD_URL": None})
        return runner.invoke(cli, base_args + args, obj={}, **kwargs)

    return _invoke
