import os
import tempfile

# Point the app at a throwaway SQLite file before anything imports stockroom.db
_TMP_DIR = tempfile.mkdtemp(prefix="stockroom-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP_DIR, "uploads")
os.environ["SLACK_WEBHOOK_URL"] = ""
os.environ["CRON_SECRET"] = "test-cron-secret"
os.environ["ALERT_TIMEZONE"] = "America/New_York"
os.environ["ALERT_HOUR"] = "9"
os.environ["ALERT_WEEKDAY"] = "1"
os.environ["DEFAULT_REORDER_POINT"] = "10"
os.environ["REDIS_URL"] = "memory://"

import pytest
from sqlalchemy import text

from stockroom.db import Base, engine
from stockroom import models  # noqa: F401


Base.metadata.create_all(engine)


@pytest.fixture(autouse=True)
def clean_tables():
    with engine.begin() as conn:
        for table in ("inventory", "pending_changes", "app_settings", "reorder_requests"):
            conn.execute(text(f"DELETE FROM {table}"))
    yield
