"""
core/flows.py

The three LLM-backed flows consumed by the UIs:

- generate_sql_query:       schema + question  -> {sqlQuery}
- generate_mock_data:       schema + SQL query -> {mockData}   (JSON text, NOT parsed here)
- test_generated_sql_query: dbUri + query      -> {result}     (placeholder capability)

Flows are stateless; each call is exactly one prompt run.
"""

from __future__ import annotations

import dataclasses
import logging

from langchain_core.language_models import BaseChatModel

from sql_genius.core.execute import Capability, execute_sql_capability
from sql_genius.core.generate import run_prompt
from sql_genius.core.prompt import (
    MOCK_DATA_PROMPT,
    SQL_QUERY_PROMPT,
    TEST_QUERY_PROMPT,
    GenerateMockDataInput,
    GenerateMockDataOutput,
    GenerateSqlQueryInput,
    GenerateSqlQueryOutput,
    TestGeneratedSqlQueryInput,
    TestGeneratedSqlQueryOutput,
)
from sql_genius.core.validate import require_text


logger = logging.getLogger(__name__)


def generate_sql_query(
    llm: BaseChatModel, schema_definition: str, natural_language_question: str
) -> GenerateSqlQueryOutput:
    """
    Generate a SQL query answering `natural_language_question` over `schema_definition`.

    Raises:
      ValidationError if either input is empty (no model call is made).
      GenerationError if the model call fails or returns no usable sqlQuery.
    """
    payload = GenerateSqlQueryInput(
        schema_definition=require_text(schema_definition, "schemaDefinition"),
        natural_language_question=require_text(natural_language_question, "naturalLanguageQuestion"),
    )
    out = run_prompt(llm, SQL_QUERY_PROMPT, payload)
    logger.info("Generated SQL query (%d chars)", len(out.sql_query))
    return out


def generate_mock_data(llm: BaseChatModel, schema_definition: str, sql_query: str) -> GenerateMockDataOutput:
    """
    Ask the model for 3-7 rows of plausible results for `sql_query`.

    The returned mockData is whatever string the model produced; callers must
    parse it (see core/mock_data.parse_mock_data) and handle invalid JSON.
    """
    payload = GenerateMockDataInput(
        schema_definition=require_text(schema_definition, "schemaDefinition"),
        sql_query=require_text(sql_query, "sqlQuery"),
    )
    return run_prompt(llm, MOCK_DATA_PROMPT, payload)


def test_generated_sql_query(
    db_uri: str,
    query: str,
    llm: BaseChatModel | None = None,
    capability: Capability | None = None,
) -> TestGeneratedSqlQueryOutput:
    """
    "Test" a query through the executeSqlQuery capability.

    With the default capability nothing is executed: the result is a fixed
    placeholder sentence naming `db_uri` and `query`.

    Without an llm the capability is invoked directly. With an llm the model is
    prompted with the capability bound as a tool; if it calls the tool, the
    tool's own output is returned verbatim, otherwise the model's `result`.
    """
    capability = capability or execute_sql_capability()
    payload = TestGeneratedSqlQueryInput(db_uri=db_uri, query=query)

    if llm is None:
        return capability(payload)

    outputs: list[TestGeneratedSqlQueryOutput] = []

    def _recording(p: TestGeneratedSqlQueryInput) -> TestGeneratedSqlQueryOutput:
        out = capability(p)
        outputs.append(out)
        return out

    recorder = dataclasses.replace(capability, invoke=_recording)
    definition = dataclasses.replace(TEST_QUERY_PROMPT, tools=(recorder.as_tool(),))
    model_out = run_prompt(llm, definition, payload)

    if outputs:
        return outputs[-1]
    logger.warning("Model answered %s without calling %s", definition.name, capability.name)
    return model_out
