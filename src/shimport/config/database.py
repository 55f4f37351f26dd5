"""Database connection configuration."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final
from urllib.parse import parse_qsl

from sqlalchemy.engine import URL

from .env import env_str, require_env_var

ENV_PREFIX: Final[str] = "SH_"
DEFAULT_DRIVER: Final[str] = "mysql+pymysql"
DEFAULT_HOST: Final[str] = "localhost"
DEFAULT_PORT: Final[int] = 3306
DEFAULT_PROTO: Final[str] = "tcp"
DEFAULT_PARAMS: Final[str] = "?charset=utf8"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str


def _parse_params(raw: str) -> dict[str, str]:
    if raw == "-":
        return {}
    return dict(parse_qsl(raw.lstrip("?"), keep_blank_values=True))


def build_database_url(prefix: str = ENV_PREFIX) -> URL:
    """Assemble a connection URL from ``<prefix>*`` variables.

    Only the database name is mandatory; everything else falls back to a local
    MariaDB listening on TCP. ``<prefix>PROTO=unix`` treats the host as a socket
    path, which PyMySQL expects as the ``unix_socket`` query argument.
    """

    database = require_env_var(f"{prefix}DB")
    user = env_str(f"{prefix}USR") or env_str(f"{prefix}USER")
    password = env_str(f"{prefix}PASS")
    host = env_str(f"{prefix}HOST", DEFAULT_HOST)
    port_value = env_str(f"{prefix}PORT")
    port = int(port_value) if port_value else DEFAULT_PORT
    proto = env_str(f"{prefix}PROTO", DEFAULT_PROTO)
    query = _parse_params(env_str(f"{prefix}PARAMS", DEFAULT_PARAMS) or "")
    driver = env_str(f"{prefix}DRIVER", DEFAULT_DRIVER) or DEFAULT_DRIVER

    if proto == "unix":
        query["unix_socket"] = host or ""
        return URL.create(
            driver, username=user, password=password, database=database, query=query
        )
    return URL.create(
        driver,
        username=user,
        password=password,
        host=host,
        port=port,
        database=database,
        query=query,
    )


def get_database_config(prefix: str = ENV_PREFIX) -> DatabaseConfig:
    """Return the store connection settings; a full ``<prefix>DSN`` wins over parts."""

    dsn = env_str(f"{prefix}DSN")
    if dsn:
        return DatabaseConfig(uri=dsn)
    url = build_database_url(prefix)
    return DatabaseConfig(uri=url.render_as_string(hide_password=False))
