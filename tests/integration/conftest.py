"""Fixtures for integration tests.

Integration tests run real subprocesses against a stand-in ``nu``
executable: a shell script that answers the plugin's command pipelines and
runs suite files with ``sh``.
"""

import stat
from collections.abc import Callable
from pathlib import Path

import pytest

from plugin_test_runner.models.config import LifecycleConfig

FAKE_NU = """\
#!/bin/sh
if [ "$1" != "-c" ]; then
    exec sh "$1"
fi

if [ -n "$FAKE_NU_LOG" ]; then
    printf '%s\\n' "$2" >> "$FAKE_NU_LOG"
fi

if [ -n "$FAKE_NU_FAIL" ]; then
    case "$2" in
        *"$FAKE_NU_FAIL"*)
            echo "Error: nu::shell::error ($FAKE_NU_FAIL)" >&2
            exit 1
            ;;
    esac
fi

case "$2" in
    "plugin list"*)
        echo 1
        ;;
    *"secret unwrap"*)
        printf '%s\\n' "$2" | sed 's/^"\\([^"]*\\)".*/\\1/'
        ;;
    *"secret info"*)
        echo "nu_plugin_secret 0.1.0"
        ;;
    *"secret validate"*)
        echo true
        ;;
    *"secret wrap"*)
        echo "<redacted:string>"
        ;;
esac
"""

BUILD_SCRIPT = "mkdir -p target/release && touch target/release/nu_plugin_secret"


@pytest.fixture
def nu_log(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """File collecting every pipeline passed to the fake nu."""
    path = tmp_path / "nu.log"
    path.touch()
    monkeypatch.setenv("FAKE_NU_LOG", str(path))
    monkeypatch.delenv("FAKE_NU_FAIL", raising=False)
    return path


@pytest.fixture
def fake_nu(tmp_path: Path, nu_log: Path) -> Path:
    """Create an executable stand-in for nu."""
    path = tmp_path / "bin" / "nu"
    path.parent.mkdir()
    path.write_text(FAKE_NU)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def lifecycle_config(tmp_path: Path, fake_nu: Path) -> LifecycleConfig:
    """Lifecycle configuration confined to the temporary directory."""
    project_root = tmp_path / "project"
    project_root.mkdir()
    return LifecycleConfig(
        project_root=project_root,
        nu_path=str(fake_nu),
        build_command=("sh", "-c", BUILD_SCRIPT),
        plugin_config_dir=tmp_path / "config" / "secret",
        temp_dir=tmp_path / "test_env",
        backup_dir=tmp_path / "config_backup",
        command_timeout=10,
        build_timeout=10,
    )


@pytest.fixture
def test_dir(lifecycle_config: LifecycleConfig) -> Path:
    """Suite tree of the plugin project."""
    path = lifecycle_config.project_root / "tests" / "nushell"
    path.mkdir(parents=True)
    return path


@pytest.fixture
def create_suite(test_dir: Path) -> Callable[[str, str, str], Path]:
    """Return a function to write suite files."""

    def _create(group: str, name: str, body: str) -> Path:
        path = test_dir / group / name
        path.parent.mkdir(exist_ok=True)
        path.write_text(body)
        return path

    return _create
