import pytest
from chronoskit import cli
from chronoskit.gateway import DocumentGateway
from chronoskit.models.row_set import RowSet


def write_env(tmp_path, connection_string, provider="sqlite"):
    path = tmp_path / ".env"
    path.write_text(f"CHRONOS_PROVIDER={provider}\nCHRONOS_CONNECTION_STRING={connection_string}\n")
    return str(path)


@pytest.fixture
def patched_gateway(monkeypatch, recording_gateway):
    monkeypatch.setattr(cli.DocumentGateway, "from_profile", lambda profile: recording_gateway)
    return recording_gateway


def test_test_connection_succeeds(tmp_path, capsys):
    env_file = write_env(tmp_path, f"sqlite:///{tmp_path / 'chronos.db'}")

    assert cli.main(["--env-file", env_file, "test-connection"]) == 0
    assert "Connection OK" in capsys.readouterr().out


def test_test_connection_fails_for_unreachable_backend(tmp_path, capsys):
    env_file = write_env(tmp_path, "sqlite:////nonexistent-dir/sub/chronos.db")

    assert cli.main(["--env-file", env_file, "test-connection"]) == 1
    assert "Error:" in capsys.readouterr().err


def test_profile_falls_back_to_environment(tmp_path, monkeypatch):
    monkeypatch.setenv("CHRONOS_PROVIDER", "sqlite")
    monkeypatch.setenv("CHRONOS_CONNECTION_STRING", "sqlite://")

    profile = cli.load_profile(str(tmp_path / "missing.env"))
    assert profile.provider_name == "sqlite"


def test_missing_configuration_is_an_error(tmp_path, monkeypatch, capsys):
    monkeypatch.delenv("CHRONOS_PROVIDER", raising=False)
    monkeypatch.delenv("CHRONOS_CONNECTION_STRING", raising=False)

    assert cli.main(["--env-file", str(tmp_path / "missing.env"), "test-connection"]) == 1
    assert "CHRONOS_PROVIDER" in capsys.readouterr().err


def test_list_users_prints_rows(tmp_path, patched_gateway, recorder, capsys):
    recorder.results.append(RowSet(["user_id", "username"], [{"user_id": 1, "username": "root"}]))
    env_file = write_env(tmp_path, "sqlite://")

    assert cli.main(["--env-file", env_file, "list-users", "--user", "root", "--password", "rp"]) == 0

    out = capsys.readouterr().out
    assert "username" in out and "root" in out
    assert recorder.calls[0].operation == "list_users"


def test_empty_listing(tmp_path, patched_gateway, capsys):
    env_file = write_env(tmp_path, "sqlite://")

    assert cli.main(["--env-file", env_file, "list-docs", "--user", "alice", "--password", "p1"]) == 0
    assert "(no rows)" in capsys.readouterr().out


def test_password_is_prompted_when_omitted(tmp_path, patched_gateway, recorder, monkeypatch, capsys):
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: "prompted")
    recorder.results.append(RowSet(["value"], [{"value": "5"}]))
    env_file = write_env(tmp_path, "sqlite://")

    assert cli.main(["--env-file", env_file, "insert-doc", "--user", "alice"]) == 0
    assert capsys.readouterr().out.strip() == "5"
    assert recorder.calls[0].parameters["pwd"] == "prompted"


def test_lease_command(tmp_path, patched_gateway, recorder, capsys):
    env_file = write_env(tmp_path, "sqlite://")

    args = ["--env-file", env_file, "lease", "--doc-id", "3", "--user", "alice", "--password", "p1", "--lessee", "bob"]
    assert cli.main(args) == 0
    assert "Leased document 3 to bob" in capsys.readouterr().out
    assert dict(recorder.calls[0].parameters) == {"doc_id": 3, "lessor": "alice", "pwd": "p1", "lessee": "bob"}


def test_unknown_command_exits():
    with pytest.raises(SystemExit):
        cli.main(["frobnicate"])


def test_set_attr_command(tmp_path, patched_gateway, recorder, capsys):
    env_file = write_env(tmp_path, "sqlite://")

    args = ["--env-file", env_file, "set-attr", "--doc-id", "42", "--user", "alice", "--password", "p1",
            "--name", "related", "--value", "17", "--link"]
    assert cli.main(args) == 0
    assert "Set related on document 42" in capsys.readouterr().out
    assert dict(recorder.calls[0].parameters) == {
        "doc_id": 42, "name": "related", "value": "17", "link": True, "user": "alice", "pwd": "p1",
    }


def test_remove_member_command(tmp_path, patched_gateway, recorder):
    env_file = write_env(tmp_path, "sqlite://")

    args = ["--env-file", env_file, "remove-member", "--doc-id", "42", "--user", "alice", "--password", "p1",
            "--name", "tags", "--value", "q3"]
    assert cli.main(args) == 0
    assert recorder.calls[0].operation == "remove_attribute_member"
    assert recorder.calls[0].parameters["value"] == "q3"


def test_is_admin_command_needs_no_password(tmp_path, patched_gateway, recorder, capsys):
    recorder.results.append(RowSet(["isadmin"], [{"isadmin": "true"}]))
    env_file = write_env(tmp_path, "sqlite://")

    assert cli.main(["--env-file", env_file, "is-admin", "--user", "root"]) == 0
    assert capsys.readouterr().out.strip() == "True"


def test_get_name_command(tmp_path, patched_gateway, recorder, capsys):
    recorder.results.append(RowSet(["get_name"], [{"get_name": "Quarterly"}]))
    env_file = write_env(tmp_path, "sqlite://")

    assert cli.main(["--env-file", env_file, "get-name", "--doc-id", "42", "--user", "alice", "--password", "p1"]) == 0
    assert capsys.readouterr().out.strip() == "Quarterly"
