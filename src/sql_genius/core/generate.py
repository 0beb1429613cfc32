"""
core/generate.py

LLM interaction layer: turns a PromptDefinition + input into a validated output record.

Why this module exists:
- Encapsulates the LLM client initialization and call pattern.
- Keeps the rest of the codebase independent of a specific LLM provider.
- Makes it easy to replace OpenAI with Gemini/Vertex/etc. later.

Current implementation:
- Uses LangChain ChatOpenAI as the LLM client.
- Sends the rendered prompt as a single human message.
- If the prompt declares tools, runs a bounded tool-calling loop.
- Decodes the final reply into the prompt's output model; anything that does not
  decode is a GenerationError.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, ToolMessage
from langchain_openai import ChatOpenAI
from pydantic import ValidationError as PydanticValidationError

from sql_genius.core.prompt import ContractModel, PromptDefinition
from sql_genius.core.validate import SqlGeniusError


logger = logging.getLogger(__name__)

MAX_TOOL_ROUNDS = 5


class GenerationError(SqlGeniusError):
    """Raised when the model call fails or its reply does not match the output contract."""


def make_llm(model: str = "gpt-4o-mini", temperature: float = 0.0, api_key: str | None = None) -> ChatOpenAI:
    """
    Chat client shared by all three flows.

    Without `api_key`, ChatOpenAI picks up OPENAI_API_KEY itself. Any
    BaseChatModel works with run_prompt, which is how tests swap in a
    scripted model.
    """
    if api_key:
        return ChatOpenAI(model=model, temperature=temperature, api_key=api_key)
    return ChatOpenAI(model=model, temperature=temperature)


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ```lang ... ``` fence if the model added one."""
    s = (text or "").strip()
    if s.startswith("```"):
        s = s[3:]
        # drop a language tag such as "json" or "sql"
        first_newline = s.find("\n")
        if first_newline != -1 and s[:first_newline].strip().isalnum():
            s = s[first_newline + 1:]
        if s.rstrip().endswith("```"):
            s = s.rstrip()[:-3]
    return s.strip()


def _message_text(message: BaseMessage) -> str:
    """Flatten message content (plain string or list of content blocks) into text."""
    content = message.content
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict) and block.get("type") == "text":
            parts.append(block.get("text", ""))
    return "".join(parts)


def _run_tool_calls(message: BaseMessage, tools_by_name: dict[str, Any]) -> list[ToolMessage]:
    out: list[ToolMessage] = []
    for call in message.tool_calls:
        tool = tools_by_name.get(call["name"])
        if tool is None:
            raise GenerationError(f"Model requested unknown tool '{call['name']}'.")
        logger.info("Invoking tool %s", call["name"])
        result = tool.invoke(call["args"])
        content = result if isinstance(result, str) else json.dumps(result)
        out.append(ToolMessage(content=content, tool_call_id=call["id"], name=call["name"]))
    return out


def run_prompt(llm: BaseChatModel, definition: PromptDefinition, payload: Any) -> ContractModel:
    """
    Call the LLM with a prompt definition and return the validated output record.

    Args:
      llm:
        Chat model created by make_llm() (or any LangChain chat model)
      definition:
        PromptDefinition holding template, contracts and tools
      payload:
        dict or input-model instance with the template fields

    Returns:
      An instance of definition.output_model.

    Raises:
      GenerationError on provider failure, unknown tool, exhausted tool loop, or
      a reply that does not decode into the output model.
    """
    prompt = definition.render(payload)
    messages: list[BaseMessage] = [HumanMessage(content=prompt)]
    tools_by_name = {t.name: t for t in definition.tools}
    runnable = llm.bind_tools(list(definition.tools)) if definition.tools else llm

    logger.info("Running prompt %s", definition.name)
    try:
        for _ in range(MAX_TOOL_ROUNDS + 1):
            reply = runnable.invoke(messages)
            messages.append(reply)
            if not getattr(reply, "tool_calls", None):
                break
            messages.extend(_run_tool_calls(reply, tools_by_name))
        else:
            raise GenerationError(
                f"{definition.name}: model kept calling tools after {MAX_TOOL_ROUNDS} rounds."
            )
    except GenerationError:
        logger.error("Prompt %s failed during tool handling", definition.name)
        raise
    except Exception as e:
        logger.error("Prompt %s failed: %s", definition.name, e)
        raise GenerationError(f"{definition.name}: model call failed: {e}") from e

    text = strip_code_fences(_message_text(messages[-1]))
    logger.debug("Raw reply for %s: %s", definition.name, text)

    try:
        return definition.output_model.model_validate_json(text)
    except PydanticValidationError as e:
        logger.error("Prompt %s returned output that does not match its contract", definition.name)
        raise GenerationError(
            f"{definition.name}: output did not match the expected schema: {e}"
        ) from e
