from chronoskit.models.row_set import RowSet

__all__ = ["RowSet"]
