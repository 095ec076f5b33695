# chronoskit/connection.py
from contextlib import contextmanager
from typing import Iterator
from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import ArgumentError, DBAPIError
from sqlalchemy.pool import NullPool
from chronoskit.config import Config
from chronoskit.exceptions import ConnectionError
from chronoskit.profile import GatewayProfile
import logging

logger = logging.getLogger(__name__)


class ConnectionProvider:
    def __init__(self, profile: GatewayProfile):
        """Provide backend connections for the provider/connection string of a profile."""
        self.profile = profile

    def _create_engine(self) -> Engine:
        """Private: Create a non-pooling SQLAlchemy engine based on the profile."""
        try:
            url = Config.build_url(self.profile.provider_name, self.profile.connection_string)
            return create_engine(url, poolclass=NullPool, **dict(self.profile.engine_options))
        except (ValueError, ArgumentError, ImportError) as e:
            logger.error(f"Invalid connection configuration for provider {self.profile.provider_name}: {e}")
            raise ConnectionError(
                f"Invalid connection configuration: {e}", provider=self.profile.provider_name
            ) from e

    @contextmanager
    def open(self) -> Iterator[Connection]:
        """Acquire a connection; it is released on every exit path, including errors."""
        engine = self._create_engine()
        try:
            try:
                conn = engine.connect()
            except DBAPIError as e:
                diagnostic = str(e.orig if e.orig is not None else e).strip()
                logger.error(f"Failed to connect to {self.profile.masked_connection_string()}: {diagnostic}")
                raise ConnectionError(diagnostic, provider=self.profile.provider_name) from e
            try:
                yield conn
            finally:
                conn.close()
        finally:
            engine.dispose()

    def probe(self):
        """Open and immediately release a connection to validate the backend is reachable.

        Raises:
            ConnectionError: If the backend cannot be reached or rejects the login.
        """
        with self.open():
            pass
        logger.info(f"Connection test passed for {self.profile.masked_connection_string()}")


def probe(provider_name: str, connection_string: str, **engine_options):
    """Probe an ad-hoc provider/connection-string pair."""
    ConnectionProvider(GatewayProfile(provider_name, connection_string, engine_options)).probe()
