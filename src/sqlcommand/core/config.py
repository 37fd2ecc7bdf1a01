"""Application configuration using pydantic-settings with grouped env prefixes."""

from __future__ import annotations

import re
from enum import StrEnum
from typing import Any, Literal

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings

from sqlcommand.core.exceptions import ConfigurationError

_SERVER_KEYS = ("server", "data source", "address", "addr", "network address")
_DATABASE_KEYS = ("database", "initial catalog")
_USER_KEYS = ("uid", "user id", "user")
_PASSWORD_KEYS = ("pwd", "password")
_ENCRYPT_ALIASES = {"true": "yes", "1": "yes", "false": "no", "0": "no"}


class EncryptMode(StrEnum):
    """ODBC ``Encrypt=`` values; mandatory and strict are both encrypted."""

    YES = "yes"
    NO = "no"
    MANDATORY = "mandatory"
    OPTIONAL = "optional"
    STRICT = "strict"


class ConnectionSettings(BaseSettings):
    """SQL Server connection configuration, rendered to an ODBC connection string."""

    model_config = {"env_prefix": "SQLCOMMAND_SQL_", "frozen": True}

    driver: str = "ODBC Driver 18 for SQL Server"
    server: str = "localhost"
    port: int | None = None
    database: str = ""
    user: str | None = None
    password: SecretStr | None = None
    encrypt: EncryptMode = EncryptMode.YES
    trust_server_certificate: bool = False
    timeout: int = 30  # login timeout, seconds
    autocommit: bool = True
    application_name: str | None = None
    options: dict[str, str] = Field(default_factory=dict)

    @field_validator("driver", "server")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("encrypt", mode="before")
    @classmethod
    def _encrypt_mode(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return EncryptMode.YES if value else EncryptMode.NO
        if isinstance(value, str):
            text = value.strip().lower()
            text = _ENCRYPT_ALIASES.get(text, text)
            if text not in {mode.value for mode in EncryptMode}:
                raise ValueError(f"unrecognized Encrypt value: {value!r}")
            return EncryptMode(text)
        return value

    @field_validator("port")
    @classmethod
    def _port_in_range(cls, value: int | None) -> int | None:
        if value is not None and not 0 < value < 65536:
            raise ValueError(f"port out of range: {value}")
        return value

    @field_validator("timeout")
    @classmethod
    def _timeout_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("timeout must be >= 0")
        return value

    def connection_string(self) -> str:
        """Render the ODBC connection string handed to the driver."""
        server = f"{self.server},{self.port}" if self.port else self.server
        parts = [
            "DRIVER={" + self.driver.replace("}", "}}") + "}",
            f"SERVER={_quote(server)}",
        ]
        if self.database:
            parts.append(f"DATABASE={_quote(self.database)}")
        if self.user:
            parts.append(f"UID={_quote(self.user)}")
            if self.password is not None:
                parts.append(f"PWD={_quote(self.password.get_secret_value())}")
        elif not any(key.lower() == "authentication" for key in self.options):
            parts.append("Trusted_Connection=yes")
        parts.append(f"Encrypt={self.encrypt.value}")
        parts.append(f"TrustServerCertificate={'yes' if self.trust_server_certificate else 'no'}")
        if self.application_name:
            parts.append(f"APP={_quote(self.application_name)}")
        for key, value in self.options.items():
            parts.append(f"{key}={_quote(value)}")
        return ";".join(parts) + ";"

    @classmethod
    def from_connection_string(cls, raw: str, **overrides: Any) -> ConnectionSettings:
        """Parse a semicolon-separated SQL Server connection string.

        Recognized keys are case-insensitive. ``Server=host,port`` splits the
        port off. Unrecognized keys are kept verbatim in ``options``.

        Raises:
            ConfigurationError: If the string is empty, has no server, or
                yields invalid settings.
        """
        text = (raw or "").strip()
        if not text:
            raise ConfigurationError("Empty connection string")

        pairs: dict[str, tuple[str, str]] = {}
        for part in _split_pairs(text):
            if "=" not in part:
                continue
            key, value = part.split("=", 1)
            key = key.strip()
            pairs[key.lower()] = (key, _unquote(value.strip()))

        def take(*names: str) -> str | None:
            found = None
            for name in names:
                item = pairs.pop(name, None)
                if item is not None and found is None:
                    found = item[1]
            return found

        server_raw = take(*_SERVER_KEYS)
        if not server_raw:
            raise ConfigurationError("No Server= found in connection string")
        server, port = server_raw, None
        match = re.match(r"^(.*?),(\d+)$", server_raw)
        if match:
            server, port = match.group(1), int(match.group(2))
        if server.lower().startswith("tcp:"):
            server = server[4:]

        fields: dict[str, Any] = {"server": server, "port": port}
        driver = take("driver")
        if driver:
            fields["driver"] = driver.strip("{}")
        database = take(*_DATABASE_KEYS)
        if database:
            fields["database"] = database
        user = take(*_USER_KEYS)
        if user:
            fields["user"] = user
        password = take(*_PASSWORD_KEYS)
        if password is not None:
            fields["password"] = password
        encrypt = take("encrypt")
        if encrypt is not None:
            fields["encrypt"] = encrypt
        trust = take("trustservercertificate", "trust server certificate")
        if trust is not None:
            fields["trust_server_certificate"] = trust
        timeout = take("connection timeout", "connect timeout", "timeout")
        if timeout is not None:
            fields["timeout"] = timeout
        app = take("app", "application name")
        if app:
            fields["application_name"] = app
        take("trusted_connection", "integrated security")
        fields["options"] = {key: value for key, value in pairs.values()}
        fields.update(overrides)

        try:
            return cls(**fields)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid connection string: {exc}") from exc


def _split_pairs(text: str) -> list[str]:
    """Split on ``;`` outside ``{...}`` values.

    A value is braced only when ``{`` opens it; inside, ``}}`` is a literal
    ``}`` and a single ``}`` closes the value.
    """
    parts: list[str] = []
    current: list[str] = []
    braced = False
    i = 0
    while i < len(text):
        char = text[i]
        if braced:
            current.append(char)
            if char == "}":
                if text[i + 1:i + 2] == "}":
                    current.append("}")
                    i += 1
                else:
                    braced = False
        elif char == "{" and "".join(current).rstrip().endswith("="):
            braced = True
            current.append(char)
        elif char == ";":
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1
    parts.append("".join(current).strip())
    return [p for p in parts if p]


def _quote(value: str) -> str:
    if any(c in value for c in ";{}=") or value != value.strip():
        return "{" + value.replace("}", "}}") + "}"
    return value


def _unquote(value: str) -> str:
    if value.startswith("{") and value.endswith("}"):
        return value[1:-1].replace("}}", "}")
    return value


class AppSettings(BaseSettings):
    """Root application settings."""

    model_config = {"env_prefix": "SQLCOMMAND_"}

    environment: Literal["dev", "uat", "prod"] = "dev"
    log_level: str = "INFO"

    sql: ConnectionSettings = Field(default_factory=ConnectionSettings)
