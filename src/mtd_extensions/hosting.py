"""Host environment description."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

ENVIRONMENT_VARIABLE = "APP_ENVIRONMENT"
APPLICATION_NAME_VARIABLE = "APP_NAME"


class Environments:
    """Well-known environment names."""

    DEVELOPMENT: str = "Development"
    STAGING: str = "Staging"
    PRODUCTION: str = "Production"


@dataclass(frozen=True)
class HostEnvironment:
    """The environment the application runs in."""

    environment_name: str = Environments.PRODUCTION
    application_name: str = "app"
    content_root: Path = field(default_factory=Path.cwd)

    def is_environment(self, name: str) -> bool:
        return self.environment_name.casefold() == name.casefold()

    def is_development(self) -> bool:
        return self.is_environment(Environments.DEVELOPMENT)

    def is_production(self) -> bool:
        return self.is_environment(Environments.PRODUCTION)

    @classmethod
    def from_environ(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        content_root: Path | None = None,
    ) -> HostEnvironment:
        """Read APP_ENVIRONMENT and APP_NAME; defaults to Production."""
        env = os.environ if environ is None else environ
        return cls(
            environment_name=env.get(ENVIRONMENT_VARIABLE) or Environments.PRODUCTION,
            application_name=env.get(APPLICATION_NAME_VARIABLE) or "app",
            content_root=content_root or Path.cwd(),
        )
