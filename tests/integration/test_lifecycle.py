"""Integration tests for the plugin lifecycle against a stand-in nu."""

import sys
from pathlib import Path

import pytest

from plugin_test_runner.lifecycle import LifecycleStepFailed, PluginLifecycle
from plugin_test_runner.models.config import LifecycleConfig

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="requires sh")


@pytest.fixture
def lifecycle(lifecycle_config: LifecycleConfig) -> PluginLifecycle:
    """Lifecycle manager using the fake nu and build command."""
    return PluginLifecycle.from_config(lifecycle_config)


@pytest.fixture
def user_config(lifecycle_config: LifecycleConfig) -> Path:
    """Existing user configuration for the plugin."""
    settings = lifecycle_config.plugin_config_dir / "settings.toml"
    settings.parent.mkdir(parents=True)
    settings.write_text('redaction = "<redacted>"\n')
    return settings


class TestSetupAndTeardown:
    """Tests for a full setup/teardown cycle."""

    async def test_round_trip_restores_environment(
        self,
        lifecycle: PluginLifecycle,
        lifecycle_config: LifecycleConfig,
        user_config: Path,
        nu_log: Path,
    ) -> None:
        """Setup prepares the plugin and teardown restores the user config."""
        await lifecycle.setup()

        assert lifecycle_config.binary_path.is_file()
        assert lifecycle_config.temp_dir.is_dir()
        assert (lifecycle_config.backup_dir / "settings.toml").is_file()
        pipelines = nu_log.read_text().splitlines()
        assert pipelines[0] == f'plugin add "{lifecycle_config.binary_path}"'
        assert pipelines[1] == "plugin use secret"
        assert "secret info" in pipelines

        user_config.write_text("changed by tests\n")

        warnings = await lifecycle.teardown()

        assert warnings == []
        assert user_config.read_text() == 'redaction = "<redacted>"\n'
        assert not lifecycle_config.temp_dir.exists()
        assert not lifecycle_config.backup_dir.exists()
        assert nu_log.read_text().splitlines()[-1] == "secret config reset --confirm"

    async def test_round_trip_with_stale_backup(
        self,
        lifecycle: PluginLifecycle,
        lifecycle_config: LifecycleConfig,
        user_config: Path,
    ) -> None:
        """A backup left by an earlier run never replaces the current config."""
        lifecycle_config.backup_dir.mkdir()
        (lifecycle_config.backup_dir / "settings.toml").write_text("stale\n")

        await lifecycle.setup()
        user_config.write_text("changed by tests\n")
        warnings = await lifecycle.teardown()

        assert warnings == []
        assert user_config.read_text() == 'redaction = "<redacted>"\n'
        assert not lifecycle_config.backup_dir.exists()

    async def test_status_after_setup(
        self, lifecycle: PluginLifecycle, user_config: Path
    ) -> None:
        """Status reflects a completed setup."""
        await lifecycle.setup()

        status = await lifecycle.get_status()

        assert status.to_dict() == {
            "binary_exists": True,
            "plugin_loaded": True,
            "test_env_ready": True,
            "config_backed_up": True,
        }
        await lifecycle.teardown()

    async def test_failed_registration_cleans_up(
        self,
        lifecycle: PluginLifecycle,
        lifecycle_config: LifecycleConfig,
        user_config: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A failing step aborts setup and leaves no residue."""
        monkeypatch.setenv("FAKE_NU_FAIL", "plugin add")

        with pytest.raises(LifecycleStepFailed) as exc_info:
            await lifecycle.setup()

        assert exc_info.value.step == "register"
        assert "nu::shell::error" in exc_info.value.reason
        assert not lifecycle_config.temp_dir.exists()
        assert not lifecycle_config.backup_dir.exists()
        assert user_config.read_text() == 'redaction = "<redacted>"\n'

    async def test_failed_build(
        self, lifecycle_config: LifecycleConfig
    ) -> None:
        """A build that does not produce the binary fails the build step."""
        lifecycle = PluginLifecycle.from_config(
            lifecycle_config.model_copy(update={"build_command": ("true",)})
        )

        with pytest.raises(LifecycleStepFailed, match="not found after build") as e:
            await lifecycle.setup()

        assert e.value.step == "build"


class TestHealthCheck:
    """Tests for the health check against a stand-in nu."""

    async def test_healthy(self, lifecycle: PluginLifecycle) -> None:
        """The unwrapped value is echoed back."""
        assert await lifecycle.health_check()

    async def test_unwrap_failure(
        self, lifecycle: PluginLifecycle, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A failing unwrap makes the plugin unhealthy."""
        monkeypatch.setenv("FAKE_NU_FAIL", "secret unwrap")

        assert not await lifecycle.health_check()

    async def test_missing_nu(
        self, lifecycle_config: LifecycleConfig, tmp_path: Path
    ) -> None:
        """A missing nu executable is reported as unhealthy."""
        lifecycle = PluginLifecycle.from_config(
            lifecycle_config.model_copy(update={"nu_path": str(tmp_path / "no-nu")})
        )

        assert not await lifecycle.health_check()
