# chronoskit/config.py
import re
from typing import Dict
from dotenv import dotenv_values
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import ArgumentError
import logging
from chronoskit.profile import GatewayProfile, PROVIDER_ENV, CONNECTION_STRING_ENV

logger = logging.getLogger(__name__)


class Config:
    """Configuration utilities and constants for the chronoskit package."""

    # Provider identifiers mapped to SQLAlchemy driver names
    PROVIDER_DRIVERS = {
        "postgres": "postgresql+psycopg2",
        "postgresql": "postgresql+psycopg2",
        "npgsql": "postgresql+psycopg2",
        "sqlite": "sqlite",
    }

    SUPPORTED_PROVIDERS = sorted(PROVIDER_DRIVERS)

    REQUIRED_ENV_FIELDS = [PROVIDER_ENV, CONNECTION_STRING_ENV]

    # Keys of "Key=Value;" connection strings mapped to URL components
    CONNECTION_KEYWORDS = {
        "host": "host",
        "server": "host",
        "port": "port",
        "username": "username",
        "user": "username",
        "userid": "username",
        "uid": "username",
        "password": "password",
        "pwd": "password",
        "database": "database",
        "initialcatalog": "database",
    }

    PASSWORD_KEYWORDS = ("password", "pwd")

    @staticmethod
    def driver_for(provider_name: str) -> str:
        """Return the SQLAlchemy driver name for a provider identifier."""
        driver = Config.PROVIDER_DRIVERS.get((provider_name or "").strip().lower())
        if not driver:
            raise ValueError(f"Unsupported provider: {provider_name}. Supported: {Config.SUPPORTED_PROVIDERS}")
        return driver

    @staticmethod
    def build_url(provider_name: str, connection_string: str) -> URL:
        """Build a SQLAlchemy URL from a provider identifier and a connection string.

        Args:
            provider_name: Provider identifier, e.g. 'postgres' or 'sqlite'.
            connection_string: Either a SQLAlchemy URL or a 'Key=Value;' string.

        Returns:
            The URL to create an engine with.

        Raises:
            ValueError: If the provider is unknown or the string cannot be parsed.
        """
        drivername = Config.driver_for(provider_name)
        if not connection_string or not connection_string.strip():
            raise ValueError("Connection string must not be empty")
        connection_string = connection_string.strip()
        if "://" in connection_string:
            url = make_url(connection_string)
            if url.get_backend_name() != drivername.split("+")[0]:
                raise ValueError(
                    f"Connection string backend '{url.get_backend_name()}' does not match provider '{provider_name}'"
                )
            return url
        return Config._url_from_keywords(drivername, connection_string)

    @staticmethod
    def _url_from_keywords(drivername: str, connection_string: str) -> URL:
        parts = {}
        query = {}
        for item in connection_string.split(";"):
            if not item.strip():
                continue
            key, sep, value = item.partition("=")
            if not sep:
                raise ValueError(f"Malformed connection string segment: '{item.strip()}'")
            key = key.strip().lower().replace(" ", "")
            value = value.strip()
            if key == "datasource":
                # a file path for sqlite, a host for server databases
                parts["database" if drivername == "sqlite" else "host"] = value
            elif key in Config.CONNECTION_KEYWORDS:
                parts[Config.CONNECTION_KEYWORDS[key]] = value
            else:
                query[key] = value
        if "port" in parts:
            if not parts["port"].isdigit():
                raise ValueError(f"Port must be numeric, got '{parts['port']}'")
            parts["port"] = int(parts["port"])
        return URL.create(drivername, query=query, **parts)

    @staticmethod
    def mask_connection_string(connection_string: str) -> str:
        """Hide the password of a connection string for logs and diagnostics."""
        if not connection_string:
            return connection_string
        if "://" in connection_string:
            try:
                return make_url(connection_string).render_as_string(hide_password=True)
            except ArgumentError:
                return "***"
        pattern = r"(?i)(\b(?:%s)\s*=)[^;]*" % "|".join(Config.PASSWORD_KEYWORDS)
        return re.sub(pattern, r"\1***", connection_string)

    @staticmethod
    def validate_env_file(env_path: str) -> bool:
        """Validate that an .env file names a supported provider and a connection string."""
        env_vars = dotenv_values(env_path)
        missing_fields = [f for f in Config.REQUIRED_ENV_FIELDS if not env_vars.get(f)]
        if missing_fields:
            logger.error(f"Missing required fields in {env_path}: {missing_fields}")
            return False
        provider = env_vars[PROVIDER_ENV].strip().lower()
        if provider not in Config.PROVIDER_DRIVERS:
            logger.error(f"Unsupported provider in {env_path}: {provider}")
            return False
        return True

    @staticmethod
    def create_test_profile(database_path: str = ":memory:") -> GatewayProfile:
        """Create a SQLite GatewayProfile for tests."""
        return GatewayProfile("sqlite", f"sqlite:///{database_path}")

    @staticmethod
    def describe(profile: GatewayProfile) -> Dict[str, str]:
        return {"provider": profile.provider_name, "connection_string": profile.masked_connection_string()}
