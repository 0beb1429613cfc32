"""
core/mock_data.py

Parsing of the mock-data flow's output into a table-ready dataset.

The flow returns JSON *text*; this module is the one place that decodes it.
Either a MockDataset comes back, or DataFormatError is raised. Rows whose key
sets differ are accepted but flagged (MockDataset.is_consistent).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Union

import pandas as pd

from sql_genius.core.generate import strip_code_fences
from sql_genius.core.validate import SqlGeniusError


PARSE_ERROR_MESSAGE = "Failed to parse mock data. The generated data was not valid JSON."

Scalar = Union[str, int, float, bool, None]


class DataFormatError(SqlGeniusError):
    """Raised when the mockData string is not a JSON array of objects."""


@dataclass(frozen=True)
class MockDataset:
    rows: List[Dict[str, Scalar]]

    @property
    def columns(self) -> List[str]:
        """Union of row keys, in first-seen order."""
        seen: Dict[str, None] = {}
        for row in self.rows:
            for key in row:
                seen.setdefault(key, None)
        return list(seen)

    @property
    def is_consistent(self) -> bool:
        if not self.rows:
            return True
        first = set(self.rows[0])
        return all(set(r) == first for r in self.rows[1:])

    def inconsistency_warning(self) -> str | None:
        if self.is_consistent:
            return None
        return (
            "Mock data rows do not all share the same columns; "
            "missing cells are shown as empty."
        )

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.rows, columns=self.columns)


def _to_scalar(value: Any) -> Scalar:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    # nested list/object: keep it readable in a single cell
    return json.dumps(value, separators=(",", ":"))


def parse_mock_data(text: str) -> MockDataset:
    """Decode mockData text into a MockDataset or raise DataFormatError."""
    try:
        decoded = json.loads(strip_code_fences(text))
    except (TypeError, ValueError) as e:
        raise DataFormatError(PARSE_ERROR_MESSAGE) from e

    if not isinstance(decoded, list) or not all(isinstance(r, dict) for r in decoded):
        raise DataFormatError(PARSE_ERROR_MESSAGE)

    rows = [{str(k): _to_scalar(v) for k, v in r.items()} for r in decoded]
    return MockDataset(rows=rows)
