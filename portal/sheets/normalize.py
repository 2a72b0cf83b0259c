"""
Turn raw sheet rows into a header/row table.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field


@dataclass(frozen=True)
class NormalizedTable:
    headers: list[str] = field(default_factory=list)
    rows: list[dict[str, str]] = field(default_factory=list)

    def preview(self) -> dict:
        return {
            "headers": list(self.headers),
            "row_count": len(self.rows),
            "first_row": self.rows[0] if self.rows else None,
        }


def normalize_rows(rows: Sequence[Sequence[str]] | None) -> NormalizedTable:
    """
    The first row is always the header row, taken verbatim.

    Short rows are padded with "" and cells past the last header are dropped.
    With duplicate headers the right-most column wins, as with any mapping.
    """
    if not rows:
        return NormalizedTable()

    headers = [str(h) for h in rows[0]]
    data = [
        {header: (str(row[index]) if index < len(row) and row[index] is not None else "")
         for index, header in enumerate(headers)}
        for row in rows[1:]
    ]
    return NormalizedTable(headers=headers, rows=data)
