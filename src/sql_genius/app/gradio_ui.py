"""
app/gradio_ui.py

Gradio UI for SQL Genius.

What this file does:
- Schema box with .sql/.txt upload and a persisted schema history (load / delete)
- Question box + "Generate SQL" button:
    schema + question -> SQL flow -> mock-data flow -> SQL code + mock table
- A "Test query" accordion wired to the placeholder test flow

Design notes:
- We keep the UI thin; all logic lives in core/*.
- Only the chat client and the history store are shared between browser
  sessions. Each session gets its own Workbench and SchemaHistory, kept in a
  gr.State that starts as None and is created on the first event.
- The generate event runs with concurrency_limit=1, so clicks queue instead of
  overlapping; the Workbench run-id fencing covers anything that slips through.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import gradio as gr
import pandas as pd
from langchain_core.language_models import BaseChatModel

from sql_genius.core.config import Settings, configure_logging, get_settings
from sql_genius.core.flows import test_generated_sql_query
from sql_genius.core.generate import GenerationError, make_llm
from sql_genius.core.history import HistoryStore, JsonFileHistoryStore, SchemaHistory, read_upload
from sql_genius.core.validate import ValidationError
from sql_genius.core.workbench import Phase, Workbench, WorkbenchState


def state_to_outputs(state: WorkbenchState) -> tuple[str, pd.DataFrame, str]:
    """Map a WorkbenchState to (sql, table, status markdown)."""
    df = state.dataset.to_frame() if state.dataset is not None else pd.DataFrame()

    lines = []
    if state.error:
        lines.append(f"**Error:** {state.error}")
    lines.extend(f"**Warning:** {w}" for w in state.warnings)
    if state.phase == Phase.DATA_FORMAT_ERROR and state.raw_mock_data:
        lines.append(f"Raw mock data:\n\n```\n{state.raw_mock_data}\n```")
    if state.phase == Phase.SUCCESS and not lines:
        lines.append(f"Generated {len(df)} mock row(s).")

    return state.sql_query, df, "\n\n".join(lines)


@dataclass
class Session:
    """Everything one browser session owns."""
    workbench: Workbench
    history: SchemaHistory


class AppHandlers:
    """
    Event handlers for the Gradio app.

    Every handler takes the caller's session (None on the first event) as its
    last argument and returns it as its last output.
    """

    def __init__(self, llm: BaseChatModel, store: HistoryStore):
        self.llm = llm
        self.store = store

    def session(self, session: Optional[Session]) -> Session:
        if session is None:
            session = Session(workbench=Workbench(self.llm), history=SchemaHistory(self.store))
        return session

    @staticmethod
    def history_choices(session: Session) -> dict:
        session.history.reload()
        return gr.update(choices=session.history.names(), value=session.history.active_name)

    def on_page_load(self, session: Optional[Session]):
        session = self.session(session)
        return self.history_choices(session), session

    def on_generate(self, schema: str, question: str, session: Optional[Session]):
        session = self.session(session)
        try:
            state = session.workbench.generate(schema, question)
        except ValidationError as e:
            gr.Warning(f"Missing information: {e}")
            # leave previous results on screen
            state = session.workbench.state
        return (*state_to_outputs(state), session)

    def on_upload(self, path: Optional[str], session: Optional[Session]):
        session = self.session(session)
        if not path:
            return gr.update(), self.history_choices(session), session
        p = Path(path)
        try:
            session.history.upload(read_upload(p.name, p.read_bytes()))
        except ValidationError as e:
            gr.Warning(f"Error reading file: {e}")
            return gr.update(), self.history_choices(session), session
        gr.Info("File loaded successfully!")
        return session.history.schema_text, self.history_choices(session), session

    def on_load(self, name: Optional[str], session: Optional[Session]):
        session = self.session(session)
        if not name:
            return gr.update(), session
        try:
            return session.history.select(name), session
        except KeyError:
            gr.Warning(f"{name} is no longer in the schema history.")
            return gr.update(), session

    def on_delete(self, name: Optional[str], session: Optional[Session]):
        session = self.session(session)
        if not name:
            return gr.update(), self.history_choices(session), session
        session.history.remove(name)
        return session.history.schema_text, self.history_choices(session), session

    def on_schema_edit(self, text: str, session: Optional[Session]):
        session = self.session(session)
        session.history.schema_text = text
        return session

    def on_test(self, db_uri: str, sql: str) -> str:
        if not sql:
            gr.Warning("Generate a SQL query first.")
            return ""
        try:
            return test_generated_sql_query(db_uri, sql, llm=self.llm).result
        except GenerationError as e:
            gr.Warning(f"Test failed: {e}")
            return ""


def make_app(settings: Settings) -> gr.Blocks:
    """
    Build and return the Gradio app.
    """
    llm = make_llm(model=settings.llm_model, temperature=settings.temperature, api_key=settings.openai_api_key)
    handlers = AppHandlers(llm, JsonFileHistoryStore(settings.history_path))

    # ---- UI layout ----
    with gr.Blocks(title="SQL Genius") as demo:
        session = gr.State(None)

        gr.Markdown("# SQL Genius")
        gr.Markdown("Transform your natural language questions into SQL queries with the power of AI.")

        with gr.Row():
            with gr.Column(scale=1):
                schema = gr.Textbox(
                    label="Database Schema",
                    placeholder="CREATE TABLE users (id INT, name VARCHAR(255), ...);",
                    lines=10,
                )
                upload = gr.File(label="Upload File", file_types=[".sql", ".txt"], type="filepath")
                with gr.Row():
                    saved = gr.Dropdown(choices=[], label="Schema history", interactive=True)
                    load_btn = gr.Button("Load")
                    delete_btn = gr.Button("Delete")

                question = gr.Textbox(label="Your Question", placeholder="How many users are there?", lines=3)
                generate_btn = gr.Button("Generate SQL", variant="primary")

            with gr.Column(scale=2):
                out_sql = gr.Code(label="Generated SQL", language="sql", interactive=False)
                out_status = gr.Markdown()
                out_df = gr.Dataframe(label="Mock Data", interactive=False)

                with gr.Accordion("Test query (placeholder)", open=False):
                    gr.Markdown("This does not connect to any database. It only reports what would have been executed.")
                    db_uri = gr.Textbox(label="Database URI", value=settings.test_db_uri)
                    test_btn = gr.Button("Test query")
                    test_out = gr.Textbox(label="Result", interactive=False)

        demo.load(handlers.on_page_load, inputs=[session], outputs=[saved, session])
        generate_btn.click(
            handlers.on_generate,
            inputs=[schema, question, session],
            outputs=[out_sql, out_df, out_status, session],
            concurrency_limit=1,
        )
        upload.upload(handlers.on_upload, inputs=[upload, session], outputs=[schema, saved, session])
        load_btn.click(handlers.on_load, inputs=[saved, session], outputs=[schema, session])
        delete_btn.click(handlers.on_delete, inputs=[saved, session], outputs=[schema, saved, session])
        schema.input(handlers.on_schema_edit, inputs=[schema, session], outputs=[session])
        test_btn.click(handlers.on_test, inputs=[db_uri, out_sql], outputs=[test_out])

    return demo


if __name__ == "__main__":
    s = get_settings()
    configure_logging(s.log_level)
    app = make_app(s)
    app.queue()
    app.launch()
