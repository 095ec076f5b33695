# chronoskit/gateway.py
import re
from datetime import datetime
from typing import Optional
from chronoskit import calls
from chronoskit.calls import BackendCall, format_timestamp
from chronoskit.connection import ConnectionProvider
from chronoskit.exceptions import DecodeError
from chronoskit.executor import QueryExecutor
from chronoskit.models.row_set import RowSet
from chronoskit.profile import GatewayProfile
import logging

logger = logging.getLogger(__name__)

INTEGER_TEXT = re.compile(r"[+-]?[0-9]+")
BOOLEAN_TEXT = {"true": True, "false": False}


def decode_int(value: str, call: Optional[BackendCall] = None) -> int:
    if not INTEGER_TEXT.fullmatch(value.strip()):
        raise DecodeError(value, "int", operation=call.operation if call else None,
                          parameters=call.redacted_parameters() if call else None)
    return int(value.strip())


def decode_bool(value: str, call: Optional[BackendCall] = None) -> bool:
    try:
        return BOOLEAN_TEXT[value.strip().lower()]
    except KeyError:
        raise DecodeError(value, "bool", operation=call.operation if call else None,
                          parameters=call.redacted_parameters() if call else None) from None


class DocumentGateway:
    """Document, attribute, user and lease operations against the backend's stored functions.

    The gateway holds nothing but its immutable profile. Credentials are
    forwarded to the backend, which validates them before applying a change;
    every operation is a single call in its own connection and transaction.

    Example:
        >>> gateway = DocumentGateway("postgres", "Host=db;Username=app;Password=...;Database=chronos")
        >>> doc_id = gateway.insert_document("alice", "secret")
        >>> gateway.set_attribute(doc_id, "title", "Report", False, "alice", "secret")
    """

    def __init__(self, provider_name: str, connection_string: str,
                 executor: Optional[QueryExecutor] = None, **engine_options):
        self.profile = GatewayProfile(provider_name, connection_string, engine_options)
        self.provider = ConnectionProvider(self.profile)
        self.executor = executor or QueryExecutor(self.provider)

    @classmethod
    def from_profile(cls, profile: GatewayProfile, executor: Optional[QueryExecutor] = None) -> 'DocumentGateway':
        return cls(profile.provider_name, profile.connection_string, executor=executor, **profile.engine_options)

    def __repr__(self) -> str:
        return f"DocumentGateway({self.profile!r})"

    def _rows(self, call: BackendCall) -> RowSet:
        return self.executor.execute_query(call)

    def _command(self, call: BackendCall):
        self.executor.execute_command(call)

    def _scalar(self, call: BackendCall) -> str:
        return self.executor.extract_scalar(self.executor.execute_query(call), call)

    def test_connection(self):
        """Check that the configured backend is reachable; raises ConnectionError otherwise."""
        self.provider.probe()

    # Documents

    def scan_documents(self, doc_id: int, time: datetime) -> RowSet:
        """Attributes and values of a document as they were at ``time``."""
        return self._rows(calls.SCANDOCS.call("scan_documents", doc_id=int(doc_id), time=format_timestamp(time)))

    def list_documents(self, user: str, pwd: str) -> RowSet:
        """Documents visible to a user, their own and leased ones."""
        return self._rows(calls.LIST_DOCS.call("list_documents", user=user, pwd=pwd))

    def list_all_documents(self, user: str, pwd: str) -> RowSet:
        """Every document; the backend requires admin rights."""
        return self._rows(calls.LIST_ALL_DOCS.call("list_all_documents", user=user, pwd=pwd))

    def insert_document(self, creator: str, pwd: str) -> int:
        call = calls.INSERT_DOC.call("insert_document", creator=creator, pwd=pwd)
        doc_id = decode_int(self._scalar(call), call)
        logger.info(f"Inserted document {doc_id} for {creator}")
        return doc_id

    def get_scheme_id(self, doc_id: int, user: str, pwd: str) -> int:
        call = calls.GET_SCHEME_ID.call("get_scheme_id", doc_id=int(doc_id), user=user, pwd=pwd)
        return decode_int(self._scalar(call), call)

    def get_name(self, doc_id: int, user: str, pwd: str) -> str:
        call = calls.GET_NAME.call("get_name", doc_id=int(doc_id), user=user, pwd=pwd)
        return self._scalar(call)

    def has_shadow(self, doc_id: int, user: str, pwd: str) -> bool:
        """Whether the document is derived from another one."""
        call = calls.HAS_SHADOW.call("has_shadow", doc_id=int(doc_id), user=user, pwd=pwd)
        return decode_bool(self._scalar(call), call)

    # Attributes

    def set_attribute(self, doc_id: int, name: str, value: str, is_link: bool, user: str, pwd: str):
        """Replace the value of a singular attribute."""
        self._command(calls.SET_ATTR.call(
            "set_attribute", doc_id=int(doc_id), name=name, value=value, link=bool(is_link), user=user, pwd=pwd
        ))

    def reset_attribute(self, doc_id: int, name: str, user: str, pwd: str):
        """Clear an attribute."""
        self._command(calls.RESET_ATTR.call("reset_attribute", doc_id=int(doc_id), name=name, user=user, pwd=pwd))

    def insert_attribute_member(self, doc_id: int, name: str, value: str, is_link: bool, user: str, pwd: str):
        """Add a member to a multi-valued attribute."""
        self._command(calls.INSERT_ATTR.call(
            "insert_attribute_member", doc_id=int(doc_id), name=name, value=value, link=bool(is_link),
            user=user, pwd=pwd
        ))

    def remove_attribute_member(self, doc_id: int, name: str, value: str, user: str, pwd: str):
        """Remove one member from a multi-valued attribute."""
        self._command(calls.REMOVE_ATTR.call(
            "remove_attribute_member", doc_id=int(doc_id), name=name, value=value, user=user, pwd=pwd
        ))

    # Leases

    def create_lease(self, doc_id: int, lessor: str, pwd: str, lessee: str):
        """Grant ``lessee`` access to a document; the lessor must be its creator."""
        self._command(calls.LEASE.call("create_lease", doc_id=int(doc_id), lessor=lessor, pwd=pwd, lessee=lessee))
        logger.info(f"Leased document {doc_id} from {lessor} to {lessee}")

    def list_lessees(self, doc_id: int, user: str, pwd: str) -> RowSet:
        return self._rows(calls.LIST_LESSEES.call("list_lessees", doc_id=int(doc_id), user=user, pwd=pwd))

    # Users

    def create_user(self, user: str, pwd: str, is_admin: bool, creator: str, creator_pwd: str) -> int:
        call = calls.CREATE_USER.call(
            "create_user", name=user, pwd=pwd, admin=bool(is_admin), creator=creator, creator_pwd=creator_pwd
        )
        user_id = decode_int(self._scalar(call), call)
        logger.info(f"Created user {user} with id {user_id}")
        return user_id

    def check_credentials(self, user: str, pwd: str):
        """Raises BackendError if the backend rejects the username/password pair."""
        self._command(calls.CREDENTIALS.call("check_credentials", user=user, pwd=pwd))

    def is_admin(self, user: str) -> bool:
        call = calls.IS_ADMIN.call("is_admin", user=user)
        return decode_bool(self._scalar(call), call)

    def is_creator(self, doc_id: int, user: str) -> bool:
        call = calls.IS_CREATOR.call("is_creator", doc_id=int(doc_id), user=user)
        return decode_bool(self._scalar(call), call)

    def list_users(self, user: str, pwd: str) -> RowSet:
        """All users; the backend requires admin rights."""
        return self._rows(calls.LIST_USERS.call("list_users", user=user, pwd=pwd))
