import gradio as gr

from sql_genius.app import gradio_ui
from sql_genius.app.gradio_ui import AppHandlers, Session
from sql_genius.core.config import Settings
from sql_genius.core.history import InMemoryHistoryStore
from sql_genius.core.workbench import Phase

from conftest import GMAIL_QUESTION, GMAIL_ROWS, GMAIL_SQL, USERS_SCHEMA, ScriptedChatModel, mock_reply, sql_reply


def _schema_file(tmp_path, name, content):
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return str(path)


def test_first_event_creates_a_session(make_llm):
    handlers = AppHandlers(make_llm(), InMemoryHistoryStore())
    choices, session = handlers.on_page_load(None)

    assert isinstance(session, Session)
    assert choices["choices"] == []
    assert handlers.on_page_load(session)[1] is session


def test_sessions_do_not_share_results(make_llm):
    handlers = AppHandlers(make_llm(sql_reply(GMAIL_SQL), mock_reply(GMAIL_ROWS)), InMemoryHistoryStore())

    sql_a, df_a, _, session_a = handlers.on_generate(USERS_SCHEMA, GMAIL_QUESTION, None)
    sql_b, df_b, status_b, session_b = handlers.on_generate("", "", None)

    assert session_a is not session_b
    assert sql_a == GMAIL_SQL and len(df_a) == 3
    assert sql_b == "" and df_b.empty and status_b == ""
    assert session_a.workbench.state.phase == Phase.SUCCESS
    assert session_b.workbench.state.phase == Phase.IDLE


def test_delete_in_one_session_keeps_other_sessions_active_schema(make_llm, tmp_path):
    handlers = AppHandlers(make_llm(), InMemoryHistoryStore())

    schema_a, _, session_a = handlers.on_upload(_schema_file(tmp_path, "a.sql", "A"), None)
    schema_b, choices_b, session_b = handlers.on_upload(_schema_file(tmp_path, "b.sql", "B"), None)
    assert (schema_a, schema_b) == ("A", "B")
    assert choices_b["choices"] == ["a.sql", "b.sql"]

    schema_a, choices_a, session_a = handlers.on_delete("a.sql", session_a)

    assert schema_a == ""
    assert choices_a["choices"] == ["b.sql"]
    assert session_b.history.active_name == "b.sql"
    assert session_b.history.schema_text == "B"


def test_load_entry_uploaded_by_another_session(make_llm, tmp_path):
    handlers = AppHandlers(make_llm(), InMemoryHistoryStore())
    handlers.on_upload(_schema_file(tmp_path, "a.sql", "A"), None)

    schema, session = handlers.on_load("a.sql", None)

    assert schema == "A"
    assert session.history.active_name == "a.sql"


def test_load_of_vanished_entry_keeps_schema_box(make_llm):
    handlers = AppHandlers(make_llm(), InMemoryHistoryStore())
    schema, _ = handlers.on_load("gone.sql", None)
    assert schema == gr.update()


def test_upload_rejects_unsupported_file(make_llm, tmp_path):
    handlers = AppHandlers(make_llm(), InMemoryHistoryStore())
    schema, choices, session = handlers.on_upload(_schema_file(tmp_path, "data.csv", "a,b"), None)

    assert schema == gr.update()
    assert choices["choices"] == []
    assert session.history.active_name is None


def test_schema_edit_is_per_session(make_llm):
    handlers = AppHandlers(make_llm(), InMemoryHistoryStore())
    session_a = handlers.on_schema_edit(USERS_SCHEMA, None)
    session_b = handlers.on_schema_edit("", None)

    assert session_a.history.schema_text == USERS_SCHEMA
    assert session_b.history.schema_text == ""


def test_make_app_builds_blocks(monkeypatch, tmp_path):
    monkeypatch.setattr(gradio_ui, "make_llm", lambda **kwargs: ScriptedChatModel())
    settings = Settings(
        openai_api_key="sk-test",
        llm_model="gpt-4o-mini",
        temperature=0.0,
        history_path=str(tmp_path / "history.json"),
        test_db_uri="sqlite://",
    )
    assert isinstance(gradio_ui.make_app(settings), gr.Blocks)
