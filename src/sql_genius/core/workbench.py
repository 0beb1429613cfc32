"""
core/workbench.py

Orchestration of one "Generate" action, as consumed by the UIs:

  IDLE -> GENERATING_SQL -> GENERATING_MOCK_DATA -> SUCCESS | SQL_ERROR | DATA_FORMAT_ERROR

- Empty schema/question never leaves the current state (ValidationError is raised).
- Every run starts from a fresh state; terminal states can always be re-entered.
- Overlapping runs are fenced by a run id: only the most recent run may write state.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional

from langchain_core.language_models import BaseChatModel

from sql_genius.core.flows import generate_mock_data, generate_sql_query
from sql_genius.core.generate import GenerationError
from sql_genius.core.mock_data import DataFormatError, MockDataset, parse_mock_data
from sql_genius.core.validate import require_schema_and_question


logger = logging.getLogger(__name__)

GENERATION_FAILED_MESSAGE = "Failed to generate SQL query or mock data. Please try again."


class Phase(str, Enum):
    IDLE = "idle"
    GENERATING_SQL = "generating_sql"
    GENERATING_MOCK_DATA = "generating_mock_data"
    SUCCESS = "success"
    SQL_ERROR = "sql_error"
    DATA_FORMAT_ERROR = "data_format_error"


BUSY_PHASES = (Phase.GENERATING_SQL, Phase.GENERATING_MOCK_DATA)


@dataclass(frozen=True)
class WorkbenchState:
    phase: Phase = Phase.IDLE
    sql_query: str = ""
    dataset: Optional[MockDataset] = None
    raw_mock_data: str = ""
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def busy(self) -> bool:
        return self.phase in BUSY_PHASES


class Workbench:
    """Runs the SQL flow then the mock-data flow and tracks the resulting state."""

    def __init__(self, llm: BaseChatModel, listener: Optional[Callable[[WorkbenchState], None]] = None):
        self.llm = llm
        self.listener = listener
        self.state = WorkbenchState()
        self._run_id = 0
        self._lock = threading.Lock()

    def _transition(self, run_id: int, state: WorkbenchState) -> bool:
        with self._lock:
            if run_id != self._run_id:
                logger.debug("Discarding %s from superseded run %d", state.phase.value, run_id)
                return False
            self.state = state
        logger.debug("Run %d -> %s", run_id, state.phase.value)
        if self.listener is not None:
            self.listener(state)
        return True

    def generate(self, schema: str, question: str) -> WorkbenchState:
        """
        Generate SQL for `question`, then mock rows for that SQL.

        Raises ValidationError (state untouched) when schema or question is empty.
        Returns the final state of this run (the current state if the run was superseded).
        """
        require_schema_and_question(schema, question)

        with self._lock:
            self._run_id += 1
            run_id = self._run_id

        state = WorkbenchState(phase=Phase.GENERATING_SQL)
        self._transition(run_id, state)

        try:
            sql_query = generate_sql_query(self.llm, schema, question).sql_query
        except GenerationError as e:
            logger.error("SQL generation failed: %s", e)
            self._transition(run_id, WorkbenchState(phase=Phase.SQL_ERROR, error=GENERATION_FAILED_MESSAGE))
            return self.state

        state = dataclasses.replace(state, phase=Phase.GENERATING_MOCK_DATA, sql_query=sql_query)
        if not self._transition(run_id, state):
            return self.state

        try:
            raw = generate_mock_data(self.llm, schema, sql_query).mock_data
        except GenerationError as e:
            logger.error("Mock data generation failed: %s", e)
            self._transition(
                run_id,
                dataclasses.replace(state, phase=Phase.SQL_ERROR, error=GENERATION_FAILED_MESSAGE),
            )
            return self.state

        try:
            dataset = parse_mock_data(raw)
        except DataFormatError as e:
            logger.warning("Mock data was not valid JSON")
            self._transition(
                run_id,
                dataclasses.replace(
                    state, phase=Phase.DATA_FORMAT_ERROR, raw_mock_data=raw, error=str(e)
                ),
            )
            return self.state

        warnings = [w for w in [dataset.inconsistency_warning()] if w]
        self._transition(
            run_id,
            dataclasses.replace(
                state, phase=Phase.SUCCESS, dataset=dataset, raw_mock_data=raw, warnings=warnings
            ),
        )
        return self.state
