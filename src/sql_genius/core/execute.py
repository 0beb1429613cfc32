"""
core/execute.py

The "execute SQL" capability a model may call while testing a generated query.

What it provides:
- Capability: explicit tool interface {name, description, input/output models, invoke}
  that can be registered with the completion provider (as a LangChain StructuredTool).
- placeholder_execute: the default executor. It NEVER connects to a database; it
  only reports, in a fixed sentence, what it would have done.
- SqlAlchemyExecutor: opt-in real executor. Not wired anywhere by default; pass it to
  execute_sql_capability() explicitly to run queries for real.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Type

import pandas as pd
from langchain_core.tools import StructuredTool
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from sql_genius.core.prompt import ContractModel, TestGeneratedSqlQueryInput, TestGeneratedSqlQueryOutput


logger = logging.getLogger(__name__)

EXECUTE_SQL_TOOL_NAME = "executeSqlQuery"

PLACEHOLDER_RESULT = (
    "Successfully connected to {db_uri} and executed {query}. "
    "However, this is just a placeholder, so no actual query was executed."
)

# (db_uri, query) -> result text
Executor = Callable[[str, str], str]


@dataclass(frozen=True)
class Capability:
    """A named operation the model may invoke, with typed input and output."""
    name: str
    description: str
    input_model: Type[ContractModel]
    output_model: Type[ContractModel]
    invoke: Callable[[ContractModel], ContractModel]

    def __call__(self, payload) -> ContractModel:
        if not isinstance(payload, self.input_model):
            payload = self.input_model.model_validate(payload)
        return self.output_model.model_validate(self.invoke(payload))

    def as_tool(self) -> StructuredTool:
        """Adapt to a LangChain tool; arguments and result use the wire (camelCase) names."""

        def _run(**kwargs) -> dict:
            return self(kwargs).model_dump(by_alias=True)

        # Dict schema: arguments reach _run exactly as the model sent them (camelCase).
        return StructuredTool.from_function(
            func=_run,
            name=self.name,
            description=self.description,
            args_schema=self.input_model.model_json_schema(by_alias=True),
        )


def placeholder_execute(db_uri: str, query: str) -> str:
    """Pretend to run `query` against `db_uri`. No connection is made; db_uri is not validated."""
    return PLACEHOLDER_RESULT.format(db_uri=db_uri, query=query)


def execute_sql_capability(executor: Executor = placeholder_execute) -> Capability:
    """Build the executeSqlQuery capability around a swappable executor."""

    def _invoke(payload: TestGeneratedSqlQueryInput) -> TestGeneratedSqlQueryOutput:
        return TestGeneratedSqlQueryOutput(result=executor(payload.db_uri, payload.query))

    return Capability(
        name=EXECUTE_SQL_TOOL_NAME,
        description="Executes an SQL query against a database and returns the result.",
        input_model=TestGeneratedSqlQueryInput,
        output_model=TestGeneratedSqlQueryOutput,
        invoke=_invoke,
    )


# ----------------------------
# Opt-in real execution
# ----------------------------

def run_query(engine: Engine, sql: str, params: dict | None = None) -> pd.DataFrame:
    with engine.connect() as conn:
        result = conn.execute(text(sql), params or {})
        rows = result.fetchall() if result.returns_rows else []
        cols = list(result.keys()) if result.returns_rows else []
    return pd.DataFrame(rows, columns=cols)


class SqlAlchemyExecutor:
    """
    Executor that really runs the query through SQLAlchemy.

    Engines are created lazily and reused per URI. Failures are reported as
    result text rather than raised, so the tool reply still reaches the model.
    """

    def __init__(self, max_rows: int = 20):
        self.max_rows = max_rows
        self._engines: dict[str, Engine] = {}

    def _engine(self, db_uri: str) -> Engine:
        if db_uri not in self._engines:
            self._engines[db_uri] = create_engine(db_uri)
        return self._engines[db_uri]

    def __call__(self, db_uri: str, query: str) -> str:
        try:
            df = run_query(self._engine(db_uri), query)
        except Exception as e:
            logger.warning("Query execution failed: %s", e)
            return f"Query failed: {e}"
        if df.empty:
            return f"Query executed successfully; {len(df.columns)} column(s), no rows returned."
        shown = df.head(self.max_rows)
        return f"Query returned {len(df)} row(s):\n{shown.to_string(index=False)}"

    def dispose(self) -> None:
        for engine in self._engines.values():
            engine.dispose()
        self._engines.clear()
