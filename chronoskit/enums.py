# chronoskit/enums.py
from enum import Enum


class ResultShape(Enum):
    ROWS = "rows"
    SCALAR = "scalar"
    NONE = "none"


class ArgumentKind(Enum):
    VALUE = "value"
    USER = "user"  # username resolved by uid() on the server
    SECRET = "secret"
