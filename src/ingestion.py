# src/ingestion.py
"""Loading categories from uploaded CSV / Excel files."""

import logging
from typing import Optional

import pandas as pd

from categories import CategoryDataset, dataset_from_frame

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".csv", ".xlsx", ".xls")


# -----------------------------------------
# Local file ingestion (CSV + Excel)
# -----------------------------------------
def ingest_file(file_obj) -> pd.DataFrame:
    if hasattr(file_obj, "name"):
        filename = file_obj.name.lower()
    else:
        filename = str(file_obj).lower()

    if filename.endswith((".xlsx", ".xls")):
        try:
            import openpyxl  # noqa: F401
        except ImportError as e:
            raise ImportError("openpyxl is required to read Excel files. Install with `pip install openpyxl`.") from e
        try:
            df = pd.read_excel(file_obj, engine="openpyxl")
        except Exception as e:
            raise RuntimeError(f"Failed to read Excel file: {e}") from e
    elif filename.endswith(".csv"):
        try:
            df = pd.read_csv(file_obj)
        except Exception as e:
            raise RuntimeError(f"Failed to read CSV file: {e}") from e
    else:
        raise ValueError("Unsupported file format. Only CSV, XLSX, and XLS are supported.")

    logger.info("Read %d rows x %d columns from %s", len(df), len(df.columns), filename)
    return df


def load_categories(
    file_obj,
    category_col: str,
    weight_col: Optional[str] = None,
    threshold_col: Optional[str] = None,
) -> CategoryDataset:
    """Read a file and turn it into a category dataset (one record per category)."""
    df = ingest_file(file_obj)
    return dataset_from_frame(df, category_col, weight_col=weight_col, threshold_col=threshold_col)
