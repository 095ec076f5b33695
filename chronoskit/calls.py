# chronoskit/calls.py
"""Descriptions of the backend's stored functions and the calls built from them.

Every value reaches the backend as a bound parameter. Usernames are resolved
server-side by wrapping their placeholder in ``uid()``.
"""
import re
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any, Dict, Mapping, Tuple
from chronoskit.enums import ArgumentKind, ResultShape

MASK = "***"

_PLACEHOLDER = re.compile(r"(?<![:\w]):(\w+)")


def format_timestamp(value: datetime) -> str:
    """Format a timestamp as 'YYYY-MM-DD HH:MM:SS.ffffff' (24-hour, zero-padded)."""
    if not isinstance(value, datetime):
        raise TypeError(f"Expected a datetime, got {type(value).__name__}")
    return (f"{value.year:04d}-{value.month:02d}-{value.day:02d} "
            f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}.{value.microsecond:06d}")


def _literal(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return "'" + str(value).replace("'", "''") + "'"


@dataclass(frozen=True)
class Argument:
    name: str
    kind: ArgumentKind = ArgumentKind.VALUE

    @property
    def placeholder(self) -> str:
        if self.kind is ArgumentKind.USER:
            return f"uid(:{self.name})"
        return f":{self.name}"


@dataclass(frozen=True)
class BackendCall:
    """One invocation of a backend function with its bound parameters."""

    operation: str
    function: 'BackendFunction'
    parameters: Mapping[str, Any]

    @property
    def sql(self) -> str:
        return self.function.sql

    @property
    def shape(self) -> ResultShape:
        return self.function.shape

    def argument_values(self) -> Tuple[Tuple[Argument, Any], ...]:
        return tuple((arg, self.parameters[arg.name]) for arg in self.function.arguments)

    def redacted_parameters(self) -> Dict[str, Any]:
        """Parameters with password values replaced by a mask."""
        return {arg.name: MASK if arg.kind is ArgumentKind.SECRET else value
                for arg, value in self.argument_values()}

    def render(self) -> str:
        """Call text with literal values substituted, for logs and diagnostics only."""
        redacted = self.redacted_parameters()
        return _PLACEHOLDER.sub(lambda match: _literal(redacted[match.group(1)]), self.sql)


@dataclass(frozen=True)
class BackendFunction:
    name: str
    arguments: Tuple[Argument, ...]
    shape: ResultShape

    @property
    def sql(self) -> str:
        args = ", ".join(arg.placeholder for arg in self.arguments)
        if self.shape is ResultShape.ROWS:
            return f"SELECT * FROM {self.name}({args})"
        return f"SELECT {self.name}({args})"

    def call(self, operation: str, **values) -> BackendCall:
        expected = [arg.name for arg in self.arguments]
        missing = [name for name in expected if name not in values]
        unexpected = [name for name in values if name not in expected]
        if missing or unexpected:
            raise ValueError(
                f"Invalid arguments for {self.name}: missing {missing}, unexpected {unexpected}"
            )
        return BackendCall(operation, self, MappingProxyType({name: values[name] for name in expected}))


def _value(name: str) -> Argument:
    return Argument(name, ArgumentKind.VALUE)


def _user(name: str) -> Argument:
    return Argument(name, ArgumentKind.USER)


def _secret(name: str) -> Argument:
    return Argument(name, ArgumentKind.SECRET)


SCANDOCS = BackendFunction("scandocs", (_value("doc_id"), _value("time")), ResultShape.ROWS)
LIST_DOCS = BackendFunction("list_docs", (_user("user"), _secret("pwd")), ResultShape.ROWS)
LIST_LESSEES = BackendFunction("list_lessees", (_value("doc_id"), _user("user"), _secret("pwd")), ResultShape.ROWS)
INSERT_DOC = BackendFunction("insert_doc", (_user("creator"), _secret("pwd")), ResultShape.SCALAR)
SET_ATTR = BackendFunction(
    "set_attr",
    (_value("doc_id"), _value("name"), _value("value"), _value("link"), _user("user"), _secret("pwd")),
    ResultShape.NONE,
)
RESET_ATTR = BackendFunction(
    "reset_attr", (_value("doc_id"), _value("name"), _user("user"), _secret("pwd")), ResultShape.NONE
)
INSERT_ATTR = BackendFunction(
    "insert_attr",
    (_value("doc_id"), _value("name"), _value("value"), _value("link"), _user("user"), _secret("pwd")),
    ResultShape.NONE,
)
REMOVE_ATTR = BackendFunction(
    "remove_attr",
    (_value("doc_id"), _value("name"), _value("value"), _user("user"), _secret("pwd")),
    ResultShape.NONE,
)
LEASE = BackendFunction(
    "lease", (_value("doc_id"), _user("lessor"), _secret("pwd"), _user("lessee")), ResultShape.NONE
)
CREATE_USER = BackendFunction(
    "create_user",
    (_value("name"), _secret("pwd"), _value("admin"), _user("creator"), _secret("creator_pwd")),
    ResultShape.SCALAR,
)
CREDENTIALS = BackendFunction("credentials", (_user("user"), _secret("pwd")), ResultShape.NONE)
IS_ADMIN = BackendFunction("isAdmin", (_user("user"),), ResultShape.SCALAR)
IS_CREATOR = BackendFunction("isCreator", (_value("doc_id"), _user("user")), ResultShape.SCALAR)
LIST_USERS = BackendFunction("list_users", (_user("user"), _secret("pwd")), ResultShape.ROWS)
LIST_ALL_DOCS = BackendFunction("list_all_docs", (_user("user"), _secret("pwd")), ResultShape.ROWS)
GET_SCHEME_ID = BackendFunction("get_scheme_id", (_value("doc_id"), _user("user"), _secret("pwd")), ResultShape.SCALAR)
GET_NAME = BackendFunction("get_name", (_value("doc_id"), _user("user"), _secret("pwd")), ResultShape.SCALAR)
HAS_SHADOW = BackendFunction("has_shadow", (_value("doc_id"), _user("user"), _secret("pwd")), ResultShape.SCALAR)

FUNCTIONS = {
    fn.name: fn
    for fn in (
        SCANDOCS, LIST_DOCS, LIST_LESSEES, INSERT_DOC, SET_ATTR, RESET_ATTR, INSERT_ATTR,
        REMOVE_ATTR, LEASE, CREATE_USER, CREDENTIALS, IS_ADMIN, IS_CREATOR, LIST_USERS,
        LIST_ALL_DOCS, GET_SCHEME_ID, GET_NAME, HAS_SHADOW,
    )
}
