import os
import tempfile
from pathlib import Path

# must be set before rx_companion modules read their configuration
os.environ.setdefault("RX_DB_PATH", str(Path(tempfile.mkdtemp()) / "checkpoints.db"))
os.environ.setdefault("RX_DEFAULT_TIMEZONE", "UTC")

import pytest

from rx_companion.services import event_store, notifier


SAMPLE_TEXT = (
    "Amoxicillin 500 mg\n"
    "1 tab 3 times a day 7 days after meals\n"
    "At night: Melatonin 3 mg — 1 tab"
)


@pytest.fixture(autouse=True)
def clean_stores():
    event_store.reset_store()
    notifier.reset_reminders()
    yield
    event_store.reset_store()
    notifier.reset_reminders()


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_TEXT
