"""Install, verify and clean up the plugin under test."""

import asyncio
import logging
import shutil
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from plugin_test_runner.models.config import LifecycleConfig
from plugin_test_runner.models.status import PluginStatus
from plugin_test_runner.plugin import PluginClient, nu_string
from plugin_test_runner.shell import CommandResult, run_command

log = logging.getLogger(__name__)

VERIFY_VALUE = "test_secret"
HEALTH_CHECK_VALUE = "health_check_secret"

type Step = Callable[[], Awaitable[None]]


class LifecycleStepFailed(Exception):
    """Raised when a setup step fails. Fatal to the whole run."""

    def __init__(self, step: str, reason: str) -> None:
        super().__init__(f"Setup step '{step}' failed: {reason}")
        self.step = step
        self.reason = reason


class TeardownStepWarning(UserWarning):
    """A teardown step that failed and was skipped."""

    def __init__(self, step: str, reason: str) -> None:
        super().__init__(f"Teardown step '{step}' failed: {reason}")
        self.step = step
        self.reason = reason


def _require(result: CommandResult, step: str, what: str) -> None:
    if not result.ok:
        raise LifecycleStepFailed(
            step,
            f"{what} exited with code {result.returncode}: "
            f"{result.output or 'no output'}",
        )


async def _remove_tree(path: Path) -> None:
    if path.exists():
        await asyncio.to_thread(shutil.rmtree, path)


@dataclass(frozen=True, kw_only=True)
class PluginLifecycle:
    """Manages the plugin's setup, teardown and diagnostics."""

    config: LifecycleConfig
    client: PluginClient

    @classmethod
    def from_config(cls, config: LifecycleConfig) -> "PluginLifecycle":
        return cls(config=config, client=PluginClient(config=config))

    async def setup(self) -> None:
        """Run the ordered setup steps.

        On the first failing step, teardown runs and the failure is re-raised
        as ``LifecycleStepFailed``; later steps never run.
        """
        steps: Sequence[tuple[str, Step]] = (
            ("build", self._ensure_binary),
            ("backup", self._backup_config),
            ("environment", self._prepare_test_env),
            ("register", self._register),
            ("activate", self._activate),
            ("verify", self._verify),
        )

        for name, step in steps:
            log.info("Setup: %s", name)
            try:
                await step()
            except LifecycleStepFailed:
                log.error("Setup step '%s' failed, running teardown", name)
                await self.teardown()
                raise
            except Exception as e:
                log.error("Setup step '%s' failed, running teardown", name)
                await self.teardown()
                raise LifecycleStepFailed(name, str(e) or type(e).__name__) from e

        log.info("Plugin setup completed")

    async def teardown(self) -> Sequence[TeardownStepWarning]:
        """Restore the environment, continuing past failed steps.

        Returns:
            Warnings for the steps that failed

        """
        warnings: list[TeardownStepWarning] = []

        async def attempt(name: str, step: Step) -> bool:
            log.info("Teardown: %s", name)
            try:
                await step()
            except Exception as e:
                warning = TeardownStepWarning(name, str(e) or type(e).__name__)
                log.warning("%s", warning)
                warnings.append(warning)
                return False
            return True

        await attempt("reset", self._reset_config)
        restored = await attempt("restore", self._restore_config)
        await attempt("clean", self._remove_test_env)
        if restored:
            await attempt("remove-backup", self._remove_backup)
        else:
            log.warning(
                "Keeping configuration backup at %s after failed restore",
                self.config.backup_dir,
            )

        return warnings

    async def health_check(self) -> bool:
        """Run a wrap/validate/unwrap round trip and an info query."""
        value = nu_string(HEALTH_CHECK_VALUE)
        try:
            checks = {
                "wrap": await self.client.wrap(value),
                "validate": await self.client.validate(value),
                "unwrap": await self.client.unwrap(value),
                "info": await self.client.info(),
            }
        except (OSError, TimeoutError) as e:
            log.warning("Health check could not run: %s", e)
            return False

        failed = [name for name, result in checks.items() if not result.ok]
        if failed:
            log.warning("Health check failed: %s", ", ".join(failed))
            return False

        if HEALTH_CHECK_VALUE not in checks["unwrap"].stdout:
            log.warning("Health check failed: unwrap did not return the value")
            return False

        return True

    async def get_status(self) -> PluginStatus:
        """Compute a status snapshot; the registry probe may fail silently."""
        try:
            loaded = await self.client.is_loaded()
        except (OSError, TimeoutError) as e:
            log.debug("Plugin registry probe failed: %s", e)
            loaded = False

        return PluginStatus(
            binary_exists=self.config.binary_path.is_file(),
            plugin_loaded=loaded,
            test_env_ready=self.config.temp_dir.is_dir(),
            config_backed_up=self.config.backup_dir.is_dir(),
        )

    async def _ensure_binary(self) -> None:
        binary = self.config.binary_path
        if binary.is_file():
            log.info("Plugin binary found: %s", binary)
            return

        log.info("Building plugin: %s", " ".join(self.config.build_command))
        result = await run_command(
            self.config.build_command,
            cwd=self.config.project_root,
            timeout=self.config.build_timeout,
        )
        _require(result, "build", "Build command")

        if not binary.is_file():
            raise LifecycleStepFailed(
                "build", f"Plugin binary not found after build: {binary}"
            )

    async def _backup_config(self) -> None:
        source = self.config.plugin_config_dir
        backup = self.config.backup_dir

        if not source.is_dir():
            if backup.exists():
                # Left by an interrupted run whose teardown never restored it.
                log.info("Keeping existing configuration backup at %s", backup)
            else:
                log.info("No plugin configuration to back up at %s", source)
            return

        if backup.exists():
            log.info("Replacing stale configuration backup at %s", backup)
            await _remove_tree(backup)
        await asyncio.to_thread(shutil.copytree, source, backup, symlinks=True)
        log.info("Backed up plugin configuration to %s", backup)

    async def _prepare_test_env(self) -> None:
        await _remove_tree(self.config.temp_dir)
        self.config.temp_dir.mkdir(parents=True)

    async def _register(self) -> None:
        _require(await self.client.register(), "register", "plugin add")

    async def _activate(self) -> None:
        _require(await self.client.activate(), "activate", "plugin use")

    async def _verify(self) -> None:
        value = nu_string(VERIFY_VALUE)
        _require(await self.client.info(), "verify", "info")
        _require(await self.client.wrap(value), "verify", "wrap")
        _require(await self.client.validate(value), "verify", "validate")

    async def _reset_config(self) -> None:
        result = await self.client.config_reset()
        if not result.ok:
            raise RuntimeError(result.output or f"exit code {result.returncode}")

    async def _restore_config(self) -> None:
        backup = self.config.backup_dir
        if not backup.is_dir():
            return

        target = self.config.plugin_config_dir
        await _remove_tree(target)
        await asyncio.to_thread(shutil.copytree, backup, target, symlinks=True)
        log.info("Restored plugin configuration from %s", backup)

    async def _remove_test_env(self) -> None:
        await _remove_tree(self.config.temp_dir)

    async def _remove_backup(self) -> None:
        await _remove_tree(self.config.backup_dir)
