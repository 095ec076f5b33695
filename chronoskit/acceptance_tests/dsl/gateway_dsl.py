# chronoskit/acceptance_tests/dsl/gateway_dsl.py
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional
import pandas as pd
import pytest
from chronoskit.exceptions import BackendError
from chronoskit.gateway import DocumentGateway

logger = logging.getLogger(__name__)


class ManualClock:
    """Clock for the in-memory backend that only moves when told to."""

    def __init__(self, start: datetime = datetime(2024, 1, 2, 3, 4, 5, 123456)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class GatewayDSL:
    def __init__(self, gateway: DocumentGateway, clock: Optional[ManualClock] = None):
        self.gateway = gateway
        self.clock = clock
        self.user = None
        self.pwd = None
        self.doc_id = None

    def as_user(self, user: str, pwd: str):
        """Run the following steps with these credentials."""
        self.user, self.pwd = user, pwd
        return self

    def create_user(self, name: str, pwd: str, admin: bool = False):
        user_id = self.gateway.create_user(name, pwd, admin, self.user, self.pwd)
        logger.info(f"Created user {name} ({user_id})")
        return self

    def create_document(self):
        self.doc_id = self.gateway.insert_document(self.user, self.pwd)
        return self

    def select_document(self, doc_id: int):
        self.doc_id = doc_id
        return self

    def set_attribute(self, name: str, value: str, link: bool = False):
        self.gateway.set_attribute(self.doc_id, name, value, link, self.user, self.pwd)
        return self

    def reset_attribute(self, name: str):
        self.gateway.reset_attribute(self.doc_id, name, self.user, self.pwd)
        return self

    def add_member(self, name: str, value: str, link: bool = False):
        self.gateway.insert_attribute_member(self.doc_id, name, value, link, self.user, self.pwd)
        return self

    def remove_member(self, name: str, value: str):
        self.gateway.remove_attribute_member(self.doc_id, name, value, self.user, self.pwd)
        return self

    def lease_to(self, lessee: str):
        self.gateway.create_lease(self.doc_id, self.user, self.pwd, lessee)
        return self

    def wait(self, **kwargs):
        """Advance the backend clock, e.g. ``wait(seconds=1)``."""
        self.clock.advance(**kwargs)
        return self

    def attributes(self, at: Optional[datetime] = None) -> List[Dict[str, Any]]:
        at = at or (self.clock() if self.clock else datetime.now())
        return self.gateway.scan_documents(self.doc_id, at).to_records()

    def assert_attributes(self, expected_records: List[Dict[str, Any]], at: Optional[datetime] = None):
        """Assert the document's attributes match the expected records."""
        actual_df = pd.DataFrame(self.attributes(at), columns=["name", "value", "is_link"])
        expected_df = pd.DataFrame(expected_records, columns=["name", "value", "is_link"])
        pd.testing.assert_frame_equal(
            actual_df.reset_index(drop=True), expected_df.reset_index(drop=True), check_like=True, check_dtype=False
        )
        return self

    def assert_no_attribute(self, name: str):
        assert all(row["name"] != name for row in self.attributes()), f"Attribute {name} still present"
        return self

    def assert_members(self, name: str, values: List[str]):
        members = [row["value"] for row in self.attributes() if row["name"] == name]
        assert members == values, f"Members of {name}: {members} != {values}"
        return self

    def assert_rejected(self, action: Callable[['GatewayDSL'], Any]):
        """Assert the backend rejects an action, surfaced as BackendError."""
        with pytest.raises(BackendError):
            action(self)
        return self
