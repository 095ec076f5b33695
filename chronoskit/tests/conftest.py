import pytest
from sqlalchemy import event
from chronoskit.config import Config
from chronoskit.connection import ConnectionProvider
from chronoskit.executor import QueryExecutor
from chronoskit.gateway import DocumentGateway
from chronoskit.models.row_set import RowSet


class RecordingExecutor(QueryExecutor):
    """Test-friendly executor that records calls and returns queued results instead of touching a database."""

    def __init__(self, results=None):
        self.calls = []
        self.results = list(results or [])

    def execute_query(self, call):
        self.calls.append(call)
        return self.results.pop(0) if self.results else RowSet([])

    def execute_command(self, call):
        self.calls.append(call)


class SQLiteFunctionProvider(ConnectionProvider):
    """ConnectionProvider that registers Python functions on every SQLite connection."""

    def __init__(self, profile, functions):
        super().__init__(profile)
        self.functions = functions

    def _create_engine(self):
        engine = super()._create_engine()

        @event.listens_for(engine, "connect")
        def register_functions(dbapi_connection, connection_record):
            for name, (num_args, func) in self.functions.items():
                dbapi_connection.create_function(name, num_args, func)

        return engine


def scalar(value):
    return RowSet(["value"], [{"value": value}])


@pytest.fixture
def sqlite_profile(tmp_path):
    return Config.create_test_profile(str(tmp_path / "chronos.db"))


@pytest.fixture
def recorder():
    return RecordingExecutor()


@pytest.fixture
def recording_gateway(recorder):
    return DocumentGateway("sqlite", "sqlite:///:memory:", executor=recorder)
