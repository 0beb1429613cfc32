"""
core/prompt.py

Prompt definitions for the SQL Genius flows.

Why this module exists:
- Prompts are the contract with the LLM: what goes in, what must come back.
- Keeping them in a dedicated module makes them easy to tune and test.
- We separate prompt-building from UI so Streamlit/Gradio can reuse it.

A PromptDefinition bundles:
- a name (used in logs)
- a fixed instructional template with {field} placeholders
- a typed input model (pydantic) whose fields fill the placeholders
- a typed output model (pydantic) the reply must decode into
- optional tools the model may call while answering

Wire names stay camelCase (schemaDefinition, sqlQuery, mockData, ...) through
pydantic aliases; Python code uses the snake_case attributes.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Sequence, Type

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ContractModel(BaseModel):
    """Base for flow input/output records: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ----------------------------
# Flow contracts
# ----------------------------

class GenerateSqlQueryInput(ContractModel):
    schema_definition: str = Field(description="The database schema definition.")
    natural_language_question: str = Field(
        description="The natural language question to convert to SQL."
    )


class GenerateSqlQueryOutput(ContractModel):
    # strip before min_length so a blank reply fails validation
    model_config = ConfigDict(str_strip_whitespace=True)

    sql_query: str = Field(
        min_length=1,
        description="The generated SQL query that answers the natural language question.",
    )


class GenerateMockDataInput(ContractModel):
    schema_definition: str = Field(description="The database schema definition.")
    sql_query: str = Field(description="The SQL query to generate mock data for.")


class GenerateMockDataOutput(ContractModel):
    mock_data: str = Field(
        description=(
            "A JSON array of objects representing the mock data for the query results. "
            "The structure of the objects should match the columns returned by the SQL query."
        )
    )


class TestGeneratedSqlQueryInput(ContractModel):
    db_uri: str = Field(description="The URI of the database to test against.")
    query: str = Field(description="The SQL query to test.")


class TestGeneratedSqlQueryOutput(ContractModel):
    result: str = Field(description="The result of the query execution.")


# ----------------------------
# Templates
# ----------------------------

SQL_QUERY_TEMPLATE = """You are an expert SQL query generator. Given the database schema and a natural language question, you will generate the corresponding SQL query to answer the question.

Database Schema:
{schema_definition}

Natural Language Question:
{natural_language_question}

SQL Query:"""


MOCK_DATA_TEMPLATE = """You are an expert data generator. Given the database schema and a SQL query, you will generate a realistic set of mock data that would be the result of running that query. Return the data as a JSON array of objects whose keys match the columns returned by the query.

Database Schema:
{schema_definition}

SQL Query:
{sql_query}

Return between 3 and 7 rows of mock data.

JSON Mock Data:"""


TEST_QUERY_TEMPLATE = """Use the executeSqlQuery tool to test the following SQL query against the database. Return the query result. Database URI: {db_uri}, Query: {query}"""


# Appended to every prompt so the reply can be decoded into the output model.
JSON_OUTPUT_INSTRUCTIONS = """Respond ONLY with a single valid JSON object (no surrounding text, no code fences) matching this JSON schema:
{schema}"""


@dataclass(frozen=True)
class PromptDefinition:
    """A named template with typed input and output contracts."""
    name: str
    template: str
    input_model: Type[ContractModel]
    output_model: Type[ContractModel]
    tools: Sequence[Any] = field(default_factory=tuple)

    def validate_input(self, payload: Any) -> ContractModel:
        """Coerce a dict (camelCase or snake_case keys) or model into input_model."""
        if isinstance(payload, self.input_model):
            return payload
        return self.input_model.model_validate(payload)

    def output_schema_text(self) -> str:
        return json.dumps(self.output_model.model_json_schema(by_alias=True), indent=2)

    def render(self, payload: Any) -> str:
        """
        Build the full prompt string.

        Input fields are substituted verbatim; the JSON-output instruction with
        the output model's schema follows the template body.
        """
        values = self.validate_input(payload).model_dump()
        body = self.template.format(**values)
        return f"{body}\n\n{JSON_OUTPUT_INSTRUCTIONS.format(schema=self.output_schema_text())}"


SQL_QUERY_PROMPT = PromptDefinition(
    name="generateSqlQueryPrompt",
    template=SQL_QUERY_TEMPLATE,
    input_model=GenerateSqlQueryInput,
    output_model=GenerateSqlQueryOutput,
)

MOCK_DATA_PROMPT = PromptDefinition(
    name="generateMockDataPrompt",
    template=MOCK_DATA_TEMPLATE,
    input_model=GenerateMockDataInput,
    output_model=GenerateMockDataOutput,
)

# Tools are attached per call (see core/flows.py) so the executor stays swappable.
TEST_QUERY_PROMPT = PromptDefinition(
    name="testGeneratedSqlQueryPrompt",
    template=TEST_QUERY_TEMPLATE,
    input_model=TestGeneratedSqlQueryInput,
    output_model=TestGeneratedSqlQueryOutput,
)
