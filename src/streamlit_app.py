# ================================
# File: src/streamlit_app.py
# ================================
import logging
from typing import Optional

import pandas as pd
import streamlit as st
from dotenv import load_dotenv

# Local imports (same src/ folder)
from categories import CategoryDataset, dataset_from_frame
from config import (
    DEFAULT_X_LABEL,
    DEFAULT_Y_LABEL,
    EXPORT_FILENAME,
    LOG_FILE,
    LOG_LEVEL,
)
from export import (
    ChartExportPipeline,
    DecodeFailedError,
    ExportError,
    KaleidoRenderTarget,
    NoSceneError,
    export_chart,
)
from ingestion import SUPPORTED_EXTENSIONS, ingest_file
from logging_config import setup_logging
from pareto import generate_chart
from visualization import format_threshold, pareto_plot


# Load .env if present
load_dotenv()
setup_logging(LOG_LEVEL, LOG_FILE)
logger = logging.getLogger(__name__)


class SessionRenderTarget(KaleidoRenderTarget):
    """Keeps the exported PNG in the session so a download button can offer it."""

    def save_bitmap(self, filename: str, data: bytes) -> None:
        st.session_state["export_file"] = (filename, data)


# ---------------- Safe Rerun ----------------
def safe_rerun():
    try:
        st.rerun()
    except AttributeError:
        st.experimental_rerun()


# ---------------- Session state ----------------
def init_session_state():
    defaults = {
        "dataset": CategoryDataset,
        "chart": None,
        "pareto_fig": None,
        "export_file": None,
        "x_label": DEFAULT_X_LABEL,
        "y_label": DEFAULT_Y_LABEL,
    }
    for key, default in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = default() if callable(default) else default
    if "export_pipeline" not in st.session_state:
        st.session_state["export_pipeline"] = ChartExportPipeline(SessionRenderTarget())


def reset_editor():
    # edits are stored by row position; drop them once rows move
    st.session_state.pop("category_editor", None)


def reset_chart():
    st.session_state["chart"] = None
    st.session_state["pareto_fig"] = None
    st.session_state["export_file"] = None


def apply_editor_changes(dataset: CategoryDataset, edited: pd.DataFrame) -> CategoryDataset:
    """Fold the cell edits from the data editor into a new snapshot, field by field."""
    for rec in dataset:
        if rec.id not in edited.index:
            continue
        row = edited.loc[rec.id]
        for field_name in ("label", "value", "threshold_percent"):
            new_value = row[field_name]
            if pd.isna(new_value):
                new_value = "" if field_name == "label" else 0
            if new_value != getattr(rec, field_name):
                dataset = dataset.update(rec.id, field_name, new_value)
    return dataset


# ---------------- Sidebar: load from file ----------------
def sidebar_file_loader():
    st.sidebar.header("Load Categories")
    uploaded = st.sidebar.file_uploader("CSV or Excel file", type=[ext.lstrip(".") for ext in SUPPORTED_EXTENSIONS])
    if uploaded is None:
        return

    try:
        df = ingest_file(uploaded)
    except Exception as e:
        st.sidebar.error(f"File ingestion failed: {e}")
        return
    if df.empty:
        st.sidebar.warning("The file has no rows.")
        return

    columns = list(df.columns)
    none_opt = "(none)"
    category_col = st.sidebar.selectbox("Category column", columns)
    weight_col = st.sidebar.selectbox("Value column (count rows if none)", [none_opt] + columns)
    threshold_col = st.sidebar.selectbox("Threshold column", [none_opt] + columns)

    if st.sidebar.button("Load Categories"):
        try:
            st.session_state["dataset"] = dataset_from_frame(
                df,
                category_col,
                weight_col=None if weight_col == none_opt else weight_col,
                threshold_col=None if threshold_col == none_opt else threshold_col,
            )
        except Exception as e:
            st.sidebar.error(f"Could not load categories: {e}")
            return
        reset_editor()
        reset_chart()
        st.sidebar.success(f"Loaded {len(st.session_state['dataset'])} categories.")
        safe_rerun()


# ---------------- Category entry ----------------
def category_editor() -> CategoryDataset:
    dataset: CategoryDataset = st.session_state["dataset"]

    col1, col2 = st.columns(2)
    with col1:
        st.session_state["x_label"] = st.text_input("Category axis label", value=st.session_state["x_label"])
    with col2:
        st.session_state["y_label"] = st.text_input("Value axis label", value=st.session_state["y_label"])

    frame = dataset.to_frame().set_index("id")
    edited = st.data_editor(
        frame,
        key="category_editor",
        hide_index=True,
        num_rows="fixed",
        use_container_width=True,
        column_config={
            "label": st.column_config.TextColumn(st.session_state["x_label"] or DEFAULT_X_LABEL),
            "value": st.column_config.NumberColumn(st.session_state["y_label"] or DEFAULT_Y_LABEL, min_value=0.0),
            "threshold_percent": st.column_config.NumberColumn("Threshold (%)", min_value=0.0, max_value=100.0),
        },
    )
    dataset = apply_editor_changes(dataset, edited)
    st.session_state["dataset"] = dataset

    col_add, col_remove, col_btn = st.columns([1, 2, 1])
    with col_add:
        if st.button("Add Category"):
            st.session_state["dataset"] = dataset.add()
            reset_editor()
            safe_rerun()
    with col_remove:
        target = st.selectbox(
            "Remove category",
            options=[rec.id for rec in dataset],
            format_func=lambda rid: dataset.get(rid).label or "(unnamed)",
            disabled=len(dataset) == 1,
        )
    with col_btn:
        if st.button("Remove", disabled=len(dataset) == 1) and target:
            st.session_state["dataset"] = dataset.remove(target)
            reset_editor()
            safe_rerun()

    return st.session_state["dataset"]


# ---------------- Chart + export ----------------
def run_export():
    st.session_state["export_file"] = None
    try:
        export_chart(st.session_state.get("pareto_fig"), st.session_state["export_pipeline"])
    except NoSceneError:
        st.warning("Generate a chart before exporting it.")
    except DecodeFailedError as e:
        st.error(f"The chart could not be rasterized: {e}")
    except ExportError as e:
        st.warning(str(e))
    except Exception as e:
        st.error(f"Chart export failed: {e}")


def chart_section():
    chart = st.session_state.get("chart")
    fig = st.session_state.get("pareto_fig")

    if chart is not None and fig is not None:
        st.subheader("Pareto Chart")
        st.plotly_chart(fig, use_container_width=True)
        st.caption(f"Threshold line: {format_threshold(chart.threshold)}%")
        st.dataframe(chart.to_frame(), hide_index=True)

    if st.button("Export PNG"):
        run_export()

    export_file: Optional[tuple] = st.session_state.get("export_file")
    if export_file:
        filename, data = export_file
        st.download_button(
            label=f"Download {EXPORT_FILENAME}",
            data=data,
            file_name=filename,
            mime="image/png",
        )


# ----------------- Main App -----------------
def main():
    st.set_page_config(page_title="Pareto Chart Generator", layout="wide")
    st.title("Pareto Chart Generator")

    init_session_state()
    sidebar_file_loader()

    st.subheader("Enter Categories")
    dataset = category_editor()

    if st.button("Generate Pareto Chart", type="primary"):
        logger.debug("Generate requested with %d categories", len(dataset))
        chart = generate_chart(dataset, st.session_state["x_label"], st.session_state["y_label"])
        reset_chart()
        if chart is None:
            st.info("Enter at least one category with a name and a value greater than 0.")
        else:
            st.session_state["chart"] = chart
            st.session_state["pareto_fig"] = pareto_plot(chart)

    chart_section()


if __name__ == "__main__":
    main()
