"""Runtime configuration helpers."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Optional, Tuple
import os


@dataclass(frozen=True)
class PortalConfig:
    """Configuration for the resume portal backend."""

    db_host: str
    db_port: int
    db_name: str
    db_user: str
    db_password: str
    db_connect_timeout: int
    jwt_secret_key: str
    session_cookie_name: str
    default_max_free_templates: int
    upgrade_url: str
    log_level: str
    cors_origins: Tuple[str, ...] = field(default_factory=tuple)

    def db_params(self) -> dict:
        """Keyword arguments accepted by :func:`psycopg2.connect`."""

        return {
            "host": self.db_host,
            "port": self.db_port,
            "dbname": self.db_name,
            "user": self.db_user,
            "password": self.db_password,
            "connect_timeout": self.db_connect_timeout,
        }


def _to_int(value: Optional[str], *, default: int) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Expected integer value, got {value!r}") from exc


def _to_origins(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ("http://localhost:4200",)
    return tuple(origin.strip() for origin in value.split(",") if origin.strip())


def load_portal_config(env: Optional[Mapping[str, str]] = None) -> PortalConfig:
    """Load :class:`PortalConfig` from environment variables."""

    env_mapping = os.environ if env is None else env

    connect_timeout = _to_int(env_mapping.get("DB_CONNECT_TIMEOUT"), default=5)
    if connect_timeout < 0:
        raise ValueError("DB_CONNECT_TIMEOUT must be non-negative")

    default_max_free_templates = _to_int(
        env_mapping.get("DEFAULT_MAX_FREE_TEMPLATES"), default=3
    )

    return PortalConfig(
        db_host=env_mapping.get("DB_HOST", "127.0.0.1"),
        db_port=_to_int(env_mapping.get("DB_PORT"), default=5432),
        db_name=env_mapping.get("DB_NAME", "resume_portal"),
        db_user=env_mapping.get("DB_USER", "portal_user"),
        db_password=env_mapping.get("DB_PASSWORD", "portal_pass"),
        db_connect_timeout=connect_timeout,
        jwt_secret_key=env_mapping.get("JWT_SECRET_KEY", "dev-secret-change-me"),
        session_cookie_name=env_mapping.get("SESSION_COOKIE_NAME", "session"),
        default_max_free_templates=default_max_free_templates,
        upgrade_url=env_mapping.get("UPGRADE_URL", "/user/pricing"),
        log_level=(env_mapping.get("LOG_LEVEL") or "INFO").strip().upper(),
        cors_origins=_to_origins(env_mapping.get("CORS_ORIGINS")),
    )
