# chronoskit/profile.py
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional
from dotenv import dotenv_values
import logging

logger = logging.getLogger(__name__)

PROVIDER_ENV = "CHRONOS_PROVIDER"
CONNECTION_STRING_ENV = "CHRONOS_CONNECTION_STRING"


@dataclass(frozen=True)
class GatewayProfile:
    """Immutable provider/connection-string pair a gateway is bound to.

    ``engine_options`` are handed to ``sqlalchemy.create_engine`` as-is, e.g.
    ``{"connect_args": {"connect_timeout": 5}}`` for a driver-level timeout.
    """

    provider_name: str
    connection_string: str
    engine_options: Mapping[str, Any] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "engine_options", MappingProxyType(dict(self.engine_options or {})))

    def __repr__(self) -> str:
        return f"GatewayProfile(provider_name={self.provider_name!r}, connection_string={self.masked_connection_string()!r})"

    def masked_connection_string(self) -> str:
        from chronoskit.config import Config
        return Config.mask_connection_string(self.connection_string)

    @staticmethod
    def from_env_file(env_file: str, **engine_options) -> 'GatewayProfile':
        if not os.path.exists(env_file):
            raise FileNotFoundError(f"Environment file not found: {env_file}")
        env_vars = dotenv_values(env_file)
        provider = env_vars.get(PROVIDER_ENV)
        conn_str = env_vars.get(CONNECTION_STRING_ENV)
        if not all([provider, conn_str]):
            raise ValueError(f"{PROVIDER_ENV} and {CONNECTION_STRING_ENV} must be provided in {env_file}")
        logger.debug(f"Loaded gateway profile for provider {provider} from {env_file}")
        return GatewayProfile(provider, conn_str, engine_options)

    @staticmethod
    def from_environ(environ: Optional[Mapping[str, str]] = None, **engine_options) -> 'GatewayProfile':
        environ = os.environ if environ is None else environ
        provider = environ.get(PROVIDER_ENV)
        conn_str = environ.get(CONNECTION_STRING_ENV)
        if not all([provider, conn_str]):
            raise ValueError(f"{PROVIDER_ENV} and {CONNECTION_STRING_ENV} must be set in the environment")
        return GatewayProfile(provider, conn_str, engine_options)
