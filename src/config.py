# src/config.py
from pathlib import Path
import os
from dotenv import load_dotenv

# -----------------------------
# Load environment variables
# -----------------------------
load_dotenv()

# -----------------------------
# Directories
# -----------------------------
PROJECT_ROOT = Path(__file__).resolve().parents[1]
EXPORT_DIR = Path(os.getenv("EXPORT_DIR", str(PROJECT_ROOT / "exports")))

# -----------------------------
# Logging
# -----------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE") or None

# -----------------------------
# Analysis defaults
# -----------------------------
DEFAULT_THRESHOLD = 80.0
DEFAULT_X_LABEL = "Category"
DEFAULT_Y_LABEL = "Value"

# -----------------------------
# Export (fixed, not configurable)
# -----------------------------
EXPORT_WIDTH = 1200
EXPORT_HEIGHT = 600
EXPORT_BACKGROUND = "white"
EXPORT_FILENAME = "pareto-chart.png"

# -----------------------------
# Chart colours
# -----------------------------
BAR_COLOR = "#6366f1"
CUMULATIVE_COLOR = "#dc2626"
THRESHOLD_COLOR = "#10b981"
GRID_COLOR = "#e5e7eb"
TEXT_COLOR = "#374151"
