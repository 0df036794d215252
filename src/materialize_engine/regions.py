"""
Region routing.

The caller selects a region per operation; each region maps to one store
connection. The mapping lives in a YAML file:

    regions:
      aws/us-east-1:
        dsn: "host=... port=6875 user=${MZ_USER} password=${MZ_PASSWORD} sslmode=require"

`${NAME}` placeholders are filled from the environment when the file is loaded.
"""

from __future__ import annotations

import os
import re
from collections.abc import Callable, Mapping
from pathlib import Path

import yaml

from src import settings
from src.logger import LOGGER
from src.materialize_engine.errors import UnknownRegion
from src.materialize_engine.execute.ports import StatementExecutor
from src.materialize_engine.execute.psycopg_executor import PsycopgExecutor

_PLACEHOLDER = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def load_region_config(path: str | Path | None = None) -> dict[str, str]:
    """Load the region → DSN mapping from YAML."""
    config_path = Path(path or settings.REGIONS_CONFIG_PATH)
    with config_path.open("r") as f:
        full_config = yaml.safe_load(f) or {}

    regions = full_config.get("regions")
    if not isinstance(regions, dict) or not regions:
        raise ValueError(f"No regions configured in {config_path}.")

    return {str(region): _resolve_dsn(region, conf) for region, conf in regions.items()}


def _resolve_dsn(region: str, conf: object) -> str:
    """Pull `dsn` out of a region block and expand ${VAR} placeholders."""
    if not isinstance(conf, dict) or not conf.get("dsn"):
        raise ValueError(f"Region '{region}' is missing a dsn.")

    def _expand(match: re.Match[str]) -> str:
        value = os.getenv(match.group(1))
        if value is None:
            raise ValueError(
                f"Region '{region}' dsn references unset environment variable {match.group(1)}."
            )
        return value

    return _PLACEHOLDER.sub(_expand, str(conf["dsn"]))


class RegionRouter:
    """Hand out one executor per region, connecting lazily on first use."""

    def __init__(
        self,
        dsns: Mapping[str, str],
        connect: Callable[[str], StatementExecutor] = PsycopgExecutor.connect,
        default_region: str = settings.DEFAULT_REGION,
    ) -> None:
        self._dsns = dict(dsns)
        self._connect = connect
        self._default_region = default_region
        self._executors: dict[str, StatementExecutor] = {}

    @classmethod
    def from_config(cls, path: str | Path | None = None) -> RegionRouter:
        return cls(load_region_config(path))

    @property
    def regions(self) -> tuple[str, ...]:
        return tuple(sorted(self._dsns))

    def resolve_region(self, region: str | None = None) -> str:
        """Return `region`, or the default region when None."""
        selected = region or self._default_region
        if selected not in self._dsns:
            raise UnknownRegion(
                f"Region {selected!r} is not configured; known regions: {', '.join(self.regions)}"
            )
        return selected

    def executor(self, region: str | None = None) -> StatementExecutor:
        """Executor for `region` (or the default region)."""
        selected = self.resolve_region(region)
        if selected not in self._executors:
            LOGGER.debug("Connecting to region %s.", selected)
            self._executors[selected] = self._connect(self._dsns[selected])
        return self._executors[selected]

    def close(self) -> None:
        """Close every open executor that supports it."""
        for region, executor in self._executors.items():
            close = getattr(executor, "close", None)
            if close is not None:
                LOGGER.debug("Closing connection to region %s.", region)
                close()
        self._executors.clear()
