import os
from pathlib import Path

from rx_companion.core.env import load_env

load_env()

DEFAULT_HORIZON_DAYS = int(os.getenv("RX_DEFAULT_HORIZON_DAYS", "7"))
MAX_HORIZON_DAYS = int(os.getenv("RX_MAX_HORIZON_DAYS", "90"))
DEFAULT_WINDOW_MINS = int(os.getenv("RX_DEFAULT_WINDOW_MINS", "30"))
SNOOZE_MINUTES = int(os.getenv("RX_SNOOZE_MINUTES", "15"))

DEFAULT_TIMEZONE = os.getenv("RX_DEFAULT_TIMEZONE", "UTC")

RX_DB_PATH = Path(
    os.getenv("RX_DB_PATH", str(Path(__file__).resolve().parents[1] / "db" / "checkpoints.db"))
)

LOG_LEVEL = os.getenv("RX_LOG_LEVEL", "INFO").upper()
