"""Client for the command vocabulary of the plugin under test.

The plugin is opaque: every operation is a ``nu -c`` pipeline whose exit
status and text output are the only things interpreted here.
"""

import json
import logging
from dataclasses import dataclass

from plugin_test_runner.models.config import LifecycleConfig
from plugin_test_runner.shell import CommandResult, run_command

log = logging.getLogger(__name__)


def nu_string(value: str) -> str:
    """Quote a Python string as a Nushell double-quoted string literal."""
    return json.dumps(value)


@dataclass(frozen=True, kw_only=True)
class PluginClient:
    """Invokes plugin commands through the Nushell executable."""

    config: LifecycleConfig

    @property
    def namespace(self) -> str:
        return self.config.plugin_name

    async def nu(self, script: str, *, timeout: float | None = None) -> CommandResult:
        """Run a Nushell pipeline and capture the result."""
        return await run_command(
            [self.config.nu_path, "-c", script],
            timeout=timeout or self.config.command_timeout,
        )

    async def register(self) -> CommandResult:
        return await self.nu(f"plugin add {nu_string(str(self.config.binary_path))}")

    async def activate(self) -> CommandResult:
        return await self.nu(f"plugin use {self.namespace}")

    async def is_loaded(self) -> bool:
        """Probe the plugin registry for the plugin name."""
        result = await self.nu(
            f"plugin list | where name == {nu_string(self.namespace)} | length"
        )
        return result.ok and result.stdout.strip() not in ("", "0")

    async def info(self) -> CommandResult:
        return await self.nu(f"{self.namespace} info")

    async def wrap(self, value: str, *, kind: str | None = None) -> CommandResult:
        """Wrap a literal value, using ``wrap-<kind>`` when a kind is given.

        ``value`` is spliced in as a Nushell expression, so strings must be
        quoted with ``nu_string`` by the caller.
        """
        command = f"wrap-{kind}" if kind else "wrap"
        return await self.nu(f"{value} | {self.namespace} {command}")

    async def unwrap(self, value: str) -> CommandResult:
        return await self.nu(
            f"{value} | {self.namespace} wrap | {self.namespace} unwrap"
        )

    async def validate(self, value: str) -> CommandResult:
        return await self.nu(
            f"{value} | {self.namespace} wrap | {self.namespace} validate"
        )

    async def type_of(self, value: str) -> CommandResult:
        return await self.nu(
            f"{value} | {self.namespace} wrap | {self.namespace} type-of"
        )

    async def config_reset(self) -> CommandResult:
        return await self.nu(f"{self.namespace} config reset --confirm")

    async def config_show(self) -> CommandResult:
        return await self.nu(f"{self.namespace} config show")
