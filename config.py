# config.py
# Defaults for the visualizer UI, animation pacing and logging.

import os

# === Page replacement ===
DEFAULT_REFERENCE_STRING = "7 0 1 2 0 3 0 4 2 3 0 3 2"
DEFAULT_FRAME_COUNT = 3
MAX_FRAME_COUNT = 16

# === CPU scheduling ===
DEFAULT_PROCESSES = "P1 0 5 2\nP2 1 3 1\nP3 2 8 4\nP4 3 6 3"
DEFAULT_QUANTUM = 2

# === Animation ===
DEFAULT_SPEED = 2.0     # steps per second
MIN_SPEED = 0.5
MAX_SPEED = 10.0
GANTT_HEIGHT = 220      # px
FRAME_CHART_HEIGHT = 150

# === Palette ===
IDLE_COLOR = "#374151"  # dark gray
HIT_COLOR = "lightgreen"
FAULT_COLOR = "salmon"
EMPTY_COLOR = "lightgray"

# === Logging ===
LOG_LEVEL = os.environ.get("OS_VISUALIZER_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
