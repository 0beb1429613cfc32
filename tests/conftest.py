from __future__ import annotations

import json
from typing import Any, List, Optional

import pytest
from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage
from langchain_core.outputs import ChatGeneration, ChatResult
from pydantic import Field

from sql_genius.core.history import InMemoryHistoryStore, SchemaHistory


class ScriptedChatModel(BaseChatModel):
    """
    Chat model that replays scripted replies in order.

    A reply may be a str (becomes AIMessage content), an AIMessage (e.g. with
    tool_calls) or an Exception instance (raised, to simulate provider errors).
    Every list of messages the model receives is kept in `prompts`.
    """
    replies: List[Any] = Field(default_factory=list)
    prompts: List[List[BaseMessage]] = Field(default_factory=list)
    bound_tools: List[Any] = Field(default_factory=list)

    @property
    def _llm_type(self) -> str:
        return "scripted"

    def bind_tools(self, tools, **kwargs):
        self.bound_tools.extend(tools)
        return self

    def _generate(self, messages: List[BaseMessage], stop: Optional[List[str]] = None, run_manager=None, **kwargs):
        self.prompts.append(list(messages))
        if not self.replies:
            raise RuntimeError("no scripted reply left")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        message = reply if isinstance(reply, AIMessage) else AIMessage(content=reply)
        return ChatResult(generations=[ChatGeneration(message=message)])


def sql_reply(query: str) -> str:
    return json.dumps({"sqlQuery": query})


def mock_reply(data: Any) -> str:
    text = data if isinstance(data, str) else json.dumps(data)
    return json.dumps({"mockData": text})


USERS_SCHEMA = "CREATE TABLE users (id INT PRIMARY KEY, name VARCHAR(255), email VARCHAR(255));"
GMAIL_QUESTION = "Show me all users with a gmail address"
GMAIL_SQL = "SELECT id, name, email FROM users WHERE email LIKE '%gmail%';"
GMAIL_ROWS = [
    {"id": 1, "name": "Ada Lovelace", "email": "ada@gmail.com"},
    {"id": 2, "name": "Alan Turing", "email": "alan@gmail.com"},
    {"id": 3, "name": "Grace Hopper", "email": "grace@gmail.com"},
]


@pytest.fixture
def make_llm():
    def _make(*replies):
        return ScriptedChatModel(replies=list(replies))
    return _make


@pytest.fixture
def history():
    return SchemaHistory(InMemoryHistoryStore())
