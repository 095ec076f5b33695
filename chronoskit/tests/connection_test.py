import pytest
from sqlalchemy import text
from chronoskit import connection
from chronoskit.connection import ConnectionProvider
from chronoskit.exceptions import ConnectionError
from chronoskit.profile import GatewayProfile


def test_probe_sqlite_file(sqlite_profile):
    ConnectionProvider(sqlite_profile).probe()


def test_module_probe_accepts_keyword_string(tmp_path):
    connection.probe("sqlite", f"Data Source={tmp_path / 'chronos.db'}")


@pytest.mark.parametrize("provider, connection_string", [
    ("sqlite", "sqlite:////nonexistent-dir/sub/chronos.db"),
    ("sqlite", "Host=db;garbage"),
    ("mssql", "Host=db"),
    ("postgres", ""),
])
def test_unreachable_or_invalid_backend_raises_connection_error(provider, connection_string):
    with pytest.raises(ConnectionError) as exc_info:
        ConnectionProvider(GatewayProfile(provider, connection_string)).probe()
    assert exc_info.value.provider == provider


def test_refused_postgres_connection_raises_connection_error():
    profile = GatewayProfile(
        "postgres", "Host=127.0.0.1;Port=1;Username=app;Password=s3cret;Database=chronos",
        {"connect_args": {"connect_timeout": 2}},
    )
    with pytest.raises(ConnectionError) as exc_info:
        ConnectionProvider(profile).probe()
    assert "s3cret" not in str(exc_info.value)


def test_connection_is_released_when_block_raises(sqlite_profile):
    captured = {}
    with pytest.raises(RuntimeError):
        with ConnectionProvider(sqlite_profile).open() as conn:
            captured["conn"] = conn
            conn.execute(text("SELECT 1"))
            raise RuntimeError("boom")

    assert captured["conn"].closed


def test_each_open_yields_a_fresh_connection(sqlite_profile):
    provider = ConnectionProvider(sqlite_profile)
    with provider.open() as first:
        pass
    with provider.open() as second:
        assert second.execute(text("SELECT 1")).scalar() == 1
    assert first is not second
    assert first.closed and second.closed
