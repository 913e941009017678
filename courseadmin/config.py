"""
Runtime configuration.

Values come from the process environment; a .env file in the working directory
is loaded first (python-dotenv), so local setups need no exported variables:

    COURSEADMIN_BASE_URL=https://my.living-apps.de/rest
    COURSEADMIN_API_TOKEN=...
    COURSEADMIN_APP_COURSES=<24-hex app id>
    COURSEADMIN_APP_INSTRUCTORS=...
    COURSEADMIN_APP_PARTICIPANTS=...
    COURSEADMIN_APP_ROOMS=...
    COURSEADMIN_APP_ENROLLMENTS=...
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import load_dotenv

from courseadmin.errors import ConfigError
from courseadmin.model import ALL_KINDS, EntityKind

DEFAULT_BASE_URL = "https://my.living-apps.de/rest"
DEFAULT_TIMEOUT = 30.0

ENV_PREFIX = "COURSEADMIN_"

_APP_ENV_KEYS = {
    EntityKind.COURSE: "APP_COURSES",
    EntityKind.INSTRUCTOR: "APP_INSTRUCTORS",
    EntityKind.PARTICIPANT: "APP_PARTICIPANTS",
    EntityKind.ROOM: "APP_ROOMS",
    EntityKind.ENROLLMENT: "APP_ENROLLMENTS",
}


@dataclass
class Settings:
    base_url: str = DEFAULT_BASE_URL
    api_token: Optional[str] = None
    app_ids: dict[EntityKind, str] = field(default_factory=dict)
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, dotenv: bool = True) -> "Settings":
        """
        Build settings from the environment.

        Tests pass an explicit mapping and dotenv=False to stay isolated from the machine.
        """
        if dotenv:
            load_dotenv()
        env = os.environ if environ is None else environ

        def get(key: str) -> Optional[str]:
            value = env.get(ENV_PREFIX + key)
            if value is None:
                return None
            value = value.strip()
            return value or None

        app_ids: dict[EntityKind, str] = {}
        for kind, key in _APP_ENV_KEYS.items():
            value = get(key)
            if value:
                app_ids[kind] = value

        timeout_raw = get("TIMEOUT")
        try:
            timeout = float(timeout_raw) if timeout_raw else DEFAULT_TIMEOUT
        except ValueError:
            raise ConfigError(f"{ENV_PREFIX}TIMEOUT must be a number, got {timeout_raw!r}") from None

        return cls(
            base_url=(get("BASE_URL") or DEFAULT_BASE_URL).rstrip("/"),
            api_token=get("API_TOKEN"),
            app_ids=app_ids,
            timeout=timeout,
            log_level=(get("LOG_LEVEL") or "WARNING").upper(),
        )

    def app_id(self, kind: EntityKind) -> str:
        try:
            return self.app_ids[kind]
        except KeyError:
            raise ConfigError(f"No app id configured for {kind.cli_name} (set {ENV_PREFIX}{_APP_ENV_KEYS[kind]})") from None

    def missing_app_ids(self) -> list[str]:
        return [ENV_PREFIX + _APP_ENV_KEYS[k] for k in ALL_KINDS if k not in self.app_ids]

    @property
    def level(self) -> int:
        value = logging.getLevelName(self.log_level)
        return value if isinstance(value, int) else logging.WARNING
