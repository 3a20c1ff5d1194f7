"""Point-in-time status of the plugin under test."""

from dataclasses import asdict, dataclass


@dataclass(frozen=True, kw_only=True)
class PluginStatus:
    """Snapshot recomputed on every request, never cached."""

    binary_exists: bool
    plugin_loaded: bool
    test_env_ready: bool
    config_backed_up: bool

    def to_dict(self) -> dict[str, bool]:
        return asdict(self)
