import streamlit as st

from sql_genius.core.config import configure_logging, get_settings
from sql_genius.core.flows import test_generated_sql_query
from sql_genius.core.generate import GenerationError, make_llm
from sql_genius.core.history import JsonFileHistoryStore, SchemaHistory, read_upload
from sql_genius.core.validate import ValidationError
from sql_genius.core.workbench import Phase, Workbench

s = get_settings()
configure_logging(s.log_level)

st.set_page_config(page_title="SQL Genius", layout="wide")
st.title("SQL Genius")
st.caption("Transform your natural language questions into SQL queries with the power of AI.")


@st.cache_resource
def get_llm(model: str, temperature: float, api_key: str):
    return make_llm(model=model, temperature=temperature, api_key=api_key)


llm = get_llm(s.llm_model, s.temperature, s.openai_api_key)

# ---- per-session objects ----
if "history" not in st.session_state:
    st.session_state.history = SchemaHistory(JsonFileHistoryStore(s.history_path))
if "workbench" not in st.session_state:
    st.session_state.workbench = Workbench(llm)
st.session_state.setdefault("schema_text", "")
st.session_state.setdefault("question", "")
st.session_state.setdefault("generate_requested", False)

history: SchemaHistory = st.session_state.history
wb: Workbench = st.session_state.workbench


# ---- callbacks (run before the next rerender, so widget state can be set here) ----
def on_upload():
    f = st.session_state.get("schema_upload")
    if f is None:
        return
    try:
        history.upload(read_upload(f.name, f.getvalue()))
    except ValidationError as e:
        st.session_state.notice = ("error", f"Error reading file: {e}")
        return
    st.session_state.schema_text = history.schema_text
    st.session_state.notice = ("success", "File loaded successfully!")


def on_schema_edit():
    history.schema_text = st.session_state.schema_text


def on_select(name: str):
    try:
        st.session_state.schema_text = history.select(name)
    except KeyError:
        st.session_state.notice = ("warning", f"{name} is no longer in the schema history.")


def on_remove(name: str):
    history.remove(name)
    st.session_state.schema_text = history.schema_text


def on_generate_click():
    st.session_state.generate_requested = True


# ---- sidebar: schema + question ----
with st.sidebar:
    st.header("Database Schema")
    st.text_area(
        "Paste your SQL `CREATE TABLE` statements or upload a file.",
        key="schema_text",
        height=220,
        placeholder="CREATE TABLE users (id INT, name VARCHAR(255), ...);",
        on_change=on_schema_edit,
    )
    st.file_uploader("Upload File", type=["sql", "txt"], key="schema_upload", on_change=on_upload)

    notice = st.session_state.pop("notice", None)
    if notice:
        kind, text = notice
        {"success": st.success, "warning": st.warning}.get(kind, st.error)(text)

    # other tabs may have changed the shared history file
    if history.reload():
        with st.expander("Schema history", expanded=False):
            for name in history.names():
                col_name, col_load, col_del = st.columns([3, 1, 1])
                marker = "● " if name == history.active_name else ""
                col_name.write(f"{marker}{name}")
                col_load.button("Load", key=f"load_{name}", on_click=on_select, args=(name,))
                col_del.button("Delete", key=f"del_{name}", on_click=on_remove, args=(name,))

    st.header("Your Question")
    st.text_area(
        "Ask a question in plain English based on your schema.",
        key="question",
        height=100,
        placeholder="How many users are there?",
    )

    # The click only sets a flag; this run then draws the button disabled,
    # generates, and reruns so it comes back enabled.
    st.button(
        "Generate SQL",
        key="generate",
        type="primary",
        disabled=wb.state.busy or st.session_state.generate_requested,
        on_click=on_generate_click,
        use_container_width=True,
    )
    if st.session_state.generate_requested:
        try:
            with st.spinner("Generating..."):
                wb.generate(st.session_state.schema_text, st.session_state.question)
        except ValidationError as e:
            st.session_state.notice = ("warning", f"Missing information: {e}")
        finally:
            st.session_state.generate_requested = False
        st.rerun()

# ---- main pane: results ----
state = wb.state

if state.error:
    st.error(state.error)

if state.sql_query:
    st.subheader("Generated SQL")
    st.code(state.sql_query, language="sql")  # st.code has a built-in copy button

for w in state.warnings:
    st.warning(w)

if state.dataset is not None:
    st.subheader("Mock Data")
    st.dataframe(state.dataset.to_frame(), use_container_width=True)

if state.phase == Phase.DATA_FORMAT_ERROR and state.raw_mock_data:
    with st.expander("Raw mock data (not valid JSON)"):
        st.code(state.raw_mock_data)

if state.phase == Phase.IDLE:
    st.info("Your generated SQL query will appear here.")

with st.expander("Test query (placeholder)", expanded=False):
    st.caption(
        "This does not connect to any database. "
        "It only reports what would have been executed."
    )
    db_uri = st.text_input("Database URI", value=s.test_db_uri)
    if st.button("Test query", disabled=not state.sql_query):
        try:
            with st.spinner("Testing..."):
                out = test_generated_sql_query(db_uri, state.sql_query, llm=llm)
            st.write(out.result)
        except GenerationError as e:
            st.error(f"Test failed: {e}")
