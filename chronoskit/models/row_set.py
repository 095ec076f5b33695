# chronoskit/models/row_set.py
from types import MappingProxyType
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple
import pandas as pd


class RowSet:
    """Ordered, read-only snapshot of result rows with named columns.

    Rows are ordered mappings from column name to value. The snapshot is fully
    materialized and holds no reference to the connection it was read from.
    """

    def __init__(self, columns: Sequence[str], rows: Iterable[Mapping[str, Any]] = ()):
        self._columns: Tuple[str, ...] = tuple(columns)
        self._rows: Tuple[Mapping[str, Any], ...] = tuple(
            MappingProxyType({col: row.get(col) for col in self._columns}) for row in rows
        )

    @classmethod
    def from_result(cls, result) -> 'RowSet':
        """Materialize a SQLAlchemy ``CursorResult`` into a RowSet."""
        return cls(list(result.keys()), [dict(row._mapping) for row in result.fetchall()])

    @classmethod
    def from_records(cls, records: List[Dict[str, Any]], columns: Optional[Sequence[str]] = None) -> 'RowSet':
        if columns is None:
            columns = list(records[0].keys()) if records else []
        return cls(columns, records)

    @property
    def columns(self) -> Tuple[str, ...]:
        return self._columns

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[Mapping[str, Any]]:
        return iter(self._rows)

    def __getitem__(self, index: int) -> Mapping[str, Any]:
        return self._rows[index]

    def __bool__(self) -> bool:
        return bool(self._rows)

    def __eq__(self, other) -> bool:
        if not isinstance(other, RowSet):
            return NotImplemented
        return self._columns == other._columns and self.to_records() == other.to_records()

    def __repr__(self) -> str:
        return f"RowSet(columns={list(self._columns)}, rows={len(self._rows)})"

    def first(self) -> Optional[Mapping[str, Any]]:
        return self._rows[0] if self._rows else None

    def column(self, name: str) -> List[Any]:
        """Return all values of one column, in row order."""
        if name not in self._columns:
            raise KeyError(f"Unknown column '{name}'. Available: {list(self._columns)}")
        return [row[name] for row in self._rows]

    def to_records(self) -> List[Dict[str, Any]]:
        return [dict(row) for row in self._rows]

    def to_dataframe(self) -> pd.DataFrame:
        return pd.DataFrame(self.to_records(), columns=list(self._columns))
