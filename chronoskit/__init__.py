from chronoskit.exceptions import (
    BackendError,
    ConnectionError,
    DecodeError,
    EmptyResultError,
    GatewayError,
)
from chronoskit.gateway import DocumentGateway
from chronoskit.models.row_set import RowSet
from chronoskit.profile import GatewayProfile

__all__ = [
    "BackendError",
    "ConnectionError",
    "DecodeError",
    "DocumentGateway",
    "EmptyResultError",
    "GatewayError",
    "GatewayProfile",
    "RowSet",
]
