"""Range-based tabular store interface."""

from typing import Protocol, runtime_checkable

# A sheet row as read from or written to the store
Row = list[str]


@runtime_checkable
class StoreTransport(Protocol):
    """Minimal spreadsheet interface used by the reconciler.

    Ranges use A1 notation (``Jobs!A2:Q5``). Reads return rows with trailing
    empty cells omitted, the way the Sheets API does.
    """

    def read_range(self, range_spec: str) -> list[Row]: ...
    def write_range(self, range_spec: str, rows: list[Row]) -> None: ...
    def batch_write(self, updates: list[tuple[str, list[Row]]]) -> None: ...
    def ensure_schema(self) -> None: ...
