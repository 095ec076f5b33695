import dataclasses
import pytest
from chronoskit.config import Config
from chronoskit.profile import GatewayProfile


@pytest.fixture
def env_file(tmp_path):
    path = tmp_path / ".env"
    path.write_text(
        "CHRONOS_PROVIDER=postgres\n"
        "CHRONOS_CONNECTION_STRING=Host=db;Port=5432;Username=app;Password=s3cret;Database=chronos\n"
    )
    return str(path)


def test_keyword_connection_string_builds_url():
    url = Config.build_url("Npgsql", "Host=db; Port=5432; Username=app; Password=s3cret; Database=chronos; Timeout=15")

    assert url.drivername == "postgresql+psycopg2"
    assert (url.host, url.port, url.username, url.password, url.database) == ("db", 5432, "app", "s3cret", "chronos")
    assert url.query["timeout"] == "15"


def test_data_source_is_a_file_for_sqlite():
    url = Config.build_url("sqlite", "Data Source=/tmp/chronos.db")
    assert url.drivername == "sqlite"
    assert url.database == "/tmp/chronos.db"


def test_url_connection_string_is_used_as_is():
    url = Config.build_url("postgresql", "postgresql://app:s3cret@db:5433/chronos")
    assert (url.host, url.port, url.database) == ("db", 5433, "chronos")


@pytest.mark.parametrize("provider, connection_string", [
    ("postgres", "sqlite:///chronos.db"),
    ("oracle", "Host=db"),
    ("postgres", ""),
    ("postgres", "Host=db;garbage"),
    ("postgres", "Host=db;Port=abc"),
])
def test_invalid_configuration_raises_value_error(provider, connection_string):
    with pytest.raises(ValueError):
        Config.build_url(provider, connection_string)


def test_mask_connection_string():
    assert Config.mask_connection_string("Host=db;Password=s3cret;Database=x") == "Host=db;Password=***;Database=x"
    assert Config.mask_connection_string("Host=db;pwd = s3cret") == "Host=db;pwd =***"
    assert Config.mask_connection_string("postgresql://app:s3cret@db/chronos") == "postgresql://app:***@db/chronos"


def test_validate_env_file(env_file, tmp_path):
    assert Config.validate_env_file(env_file)

    missing = tmp_path / "missing.env"
    missing.write_text("CHRONOS_PROVIDER=postgres\n")
    assert not Config.validate_env_file(str(missing))

    unsupported = tmp_path / "unsupported.env"
    unsupported.write_text("CHRONOS_PROVIDER=mssql\nCHRONOS_CONNECTION_STRING=Host=db\n")
    assert not Config.validate_env_file(str(unsupported))


def test_profile_from_env_file(env_file):
    profile = GatewayProfile.from_env_file(env_file, connect_args={"connect_timeout": 5})

    assert profile.provider_name == "postgres"
    assert profile.connection_string.startswith("Host=db;")
    assert profile.engine_options["connect_args"] == {"connect_timeout": 5}
    assert "s3cret" not in repr(profile)


def test_profile_from_env_file_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        GatewayProfile.from_env_file(str(tmp_path / "nope.env"))

    partial = tmp_path / ".env"
    partial.write_text("CHRONOS_PROVIDER=postgres\n")
    with pytest.raises(ValueError):
        GatewayProfile.from_env_file(str(partial))


def test_profile_from_environ():
    profile = GatewayProfile.from_environ({"CHRONOS_PROVIDER": "sqlite", "CHRONOS_CONNECTION_STRING": "sqlite://"})
    assert profile == GatewayProfile("sqlite", "sqlite://")

    with pytest.raises(ValueError):
        GatewayProfile.from_environ({})


def test_profile_is_immutable():
    profile = Config.create_test_profile()
    with pytest.raises(dataclasses.FrozenInstanceError):
        profile.connection_string = "sqlite:///other.db"
    with pytest.raises(TypeError):
        profile.engine_options["echo"] = True


def test_describe_masks_password():
    profile = GatewayProfile("postgres", "Host=db;Password=s3cret")
    assert Config.describe(profile) == {"provider": "postgres", "connection_string": "Host=db;Password=***"}
