# chronoskit/acceptance_tests/drivers/in_memory_backend.py
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple
from chronoskit.calls import BackendCall
from chronoskit.enums import ArgumentKind, ResultShape
from chronoskit.exceptions import BackendError
from chronoskit.executor import QueryExecutor
from chronoskit.models.row_set import RowSet
import logging

logger = logging.getLogger(__name__)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S.%f"


class BackendRejection(Exception):
    """Raised by the in-memory stored functions, like a RAISE EXCEPTION in SQL."""
    pass


class InMemoryBackend:
    """Python stand-in for the stored functions the gateway calls.

    Attribute changes are kept as a timestamped history so that ``scandocs``
    can return the state of a document at any point in time.
    """

    def __init__(self, clock: Optional[Callable[[], datetime]] = None,
                 root: Tuple[str, str] = ("root", "rootpw")):
        self.clock = clock or datetime.now
        self.users: Dict[int, Dict[str, Any]] = {}
        self.documents: Dict[int, Dict[str, Any]] = {}
        self.history: List[Tuple[datetime, int, str, str, Optional[str], bool]] = []
        self.leases = set()
        self._next_user_id = 1
        self._next_doc_id = 1
        self._add_user(root[0], root[1], True)

    def _add_user(self, name: str, pwd: str, admin: bool) -> int:
        if any(u["username"] == name for u in self.users.values()):
            raise BackendRejection(f"duplicate key value violates unique constraint: username={name}")
        user_id = self._next_user_id
        self._next_user_id += 1
        self.users[user_id] = {"username": name, "pwd": pwd, "admin": admin}
        return user_id

    def _document(self, doc_id: int) -> Dict[str, Any]:
        if doc_id not in self.documents:
            raise BackendRejection(f"document {doc_id} does not exist")
        return self.documents[doc_id]

    def _require_access(self, doc_id: int, user_id: int):
        doc = self._document(doc_id)
        if doc["creator"] != user_id and (doc_id, user_id) not in self.leases:
            raise BackendRejection(f"permission denied for document {doc_id}")

    def _require_admin(self, user_id: int):
        if not self.users[user_id]["admin"]:
            raise BackendRejection("permission denied: admin rights required")

    def _record(self, doc_id: int, op: str, name: str, value: Optional[str] = None, link: bool = False):
        self.history.append((self.clock(), doc_id, op, name, value, link))

    def _state(self, doc_id: int, until: Optional[datetime] = None) -> Dict[str, Dict[str, Any]]:
        state: Dict[str, Dict[str, Any]] = {}
        for ts, hist_doc, op, name, value, link in self.history:
            if hist_doc != doc_id or (until is not None and ts > until):
                continue
            if op == "set":
                state[name] = {"values": [value], "link": link}
            elif op == "reset":
                state.pop(name, None)
            elif op == "insert":
                state.setdefault(name, {"values": [], "link": link})["values"].append(value)
            elif op == "remove":
                members = state.get(name, {}).get("values", [])
                if value in members:
                    members.remove(value)
                if name in state and not members:
                    state.pop(name)
        return state

    def _doc_row(self, doc_id: int) -> Dict[str, Any]:
        doc = self.documents[doc_id]
        return {"doc_id": doc_id, "name": self._name(doc_id), "creator": self.users[doc["creator"]]["username"]}

    def _name(self, doc_id: int) -> str:
        values = self._state(doc_id).get("name", {}).get("values")
        return values[0] if values else f"Document {doc_id}"

    # Stored functions

    def uid(self, username: str) -> int:
        for user_id, user in self.users.items():
            if user["username"] == username:
                return user_id
        raise BackendRejection(f"unknown user {username}")

    def credentials(self, user_id: int, pwd: str):
        if self.users[user_id]["pwd"] != pwd:
            raise BackendRejection("invalid credentials")

    def scandocs(self, doc_id: int, time: str) -> List[Dict[str, Any]]:
        self._document(doc_id)
        until = datetime.strptime(time, TIME_FORMAT)
        return [
            {"name": name, "value": value, "is_link": attr["link"]}
            for name, attr in sorted(self._state(doc_id, until).items())
            for value in attr["values"]
        ]

    def list_docs(self, user_id: int, pwd: str) -> List[Dict[str, Any]]:
        self.credentials(user_id, pwd)
        return [self._doc_row(doc_id) for doc_id, doc in sorted(self.documents.items())
                if doc["creator"] == user_id or (doc_id, user_id) in self.leases]

    def list_all_docs(self, user_id: int, pwd: str) -> List[Dict[str, Any]]:
        self.credentials(user_id, pwd)
        self._require_admin(user_id)
        return [self._doc_row(doc_id) for doc_id in sorted(self.documents)]

    def list_lessees(self, doc_id: int, user_id: int, pwd: str) -> List[Dict[str, Any]]:
        self.credentials(user_id, pwd)
        self._require_access(doc_id, user_id)
        return [{"user_id": lessee, "username": self.users[lessee]["username"]}
                for leased_doc, lessee in sorted(self.leases) if leased_doc == doc_id]

    def insert_doc(self, user_id: int, pwd: str) -> int:
        self.credentials(user_id, pwd)
        doc_id = self._next_doc_id
        self._next_doc_id += 1
        self.documents[doc_id] = {"creator": user_id, "scheme_id": 1, "shadow": False}
        return doc_id

    def set_attr(self, doc_id: int, name: str, value: str, link: bool, user_id: int, pwd: str):
        self.credentials(user_id, pwd)
        self._require_access(doc_id, user_id)
        self._record(doc_id, "set", name, value, link)

    def reset_attr(self, doc_id: int, name: str, user_id: int, pwd: str):
        self.credentials(user_id, pwd)
        self._require_access(doc_id, user_id)
        self._record(doc_id, "reset", name)

    def insert_attr(self, doc_id: int, name: str, value: str, link: bool, user_id: int, pwd: str):
        self.credentials(user_id, pwd)
        self._require_access(doc_id, user_id)
        self._record(doc_id, "insert", name, value, link)

    def remove_attr(self, doc_id: int, name: str, value: str, user_id: int, pwd: str):
        self.credentials(user_id, pwd)
        self._require_access(doc_id, user_id)
        self._record(doc_id, "remove", name, value)

    def lease(self, doc_id: int, lessor_id: int, pwd: str, lessee_id: int):
        self.credentials(lessor_id, pwd)
        if self._document(doc_id)["creator"] != lessor_id:
            raise BackendRejection(f"only the creator can lease document {doc_id}")
        self.leases.add((doc_id, lessee_id))

    def create_user(self, name: str, pwd: str, admin: bool, creator_id: int, creator_pwd: str) -> int:
        self.credentials(creator_id, creator_pwd)
        self._require_admin(creator_id)
        return self._add_user(name, pwd, bool(admin))

    def isadmin(self, user_id: int) -> bool:
        return self.users[user_id]["admin"]

    def iscreator(self, doc_id: int, user_id: int) -> bool:
        return self._document(doc_id)["creator"] == user_id

    def list_users(self, user_id: int, pwd: str) -> List[Dict[str, Any]]:
        self.credentials(user_id, pwd)
        self._require_admin(user_id)
        return [{"user_id": uid, "username": u["username"], "is_admin": u["admin"]}
                for uid, u in sorted(self.users.items())]

    def get_scheme_id(self, doc_id: int, user_id: int, pwd: str) -> int:
        self.credentials(user_id, pwd)
        self._require_access(doc_id, user_id)
        return self.documents[doc_id]["scheme_id"]

    def get_name(self, doc_id: int, user_id: int, pwd: str) -> str:
        self.credentials(user_id, pwd)
        self._require_access(doc_id, user_id)
        return self._name(doc_id)

    def has_shadow(self, doc_id: int, user_id: int, pwd: str) -> bool:
        self.credentials(user_id, pwd)
        self._require_access(doc_id, user_id)
        return self.documents[doc_id]["shadow"]


class InMemoryExecutor(QueryExecutor):
    """Executes BackendCalls against an InMemoryBackend instead of a database."""

    def __init__(self, backend: InMemoryBackend):
        self.backend = backend
        self.calls: List[BackendCall] = []

    def _invoke(self, call: BackendCall):
        self.calls.append(call)
        try:
            args = [self.backend.uid(value) if arg.kind is ArgumentKind.USER else value
                    for arg, value in call.argument_values()]
            return getattr(self.backend, call.function.name.lower())(*args)
        except BackendRejection as e:
            logger.error(f"Backend rejected {call.operation}: {e}")
            raise BackendError(str(e), operation=call.operation, parameters=call.redacted_parameters()) from e

    def execute_query(self, call: BackendCall) -> RowSet:
        result = self._invoke(call)
        if call.shape is ResultShape.ROWS:
            return RowSet.from_records(result)
        return RowSet([call.function.name], [{call.function.name: result}])

    def execute_command(self, call: BackendCall):
        self._invoke(call)
