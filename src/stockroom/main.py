import logging

from fastapi import FastAPI
from sqlalchemy import text

from stockroom.db import engine
from stockroom.routers import alerts, excel, inventory, pending_changes, reorder_requests, settings as settings_router
from stockroom.settings import get_settings

logging.basicConfig(
    level=get_settings().log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Stockroom")

app.include_router(inventory.router)
app.include_router(pending_changes.router)
app.include_router(reorder_requests.router)
app.include_router(excel.router)
app.include_router(settings_router.router)
app.include_router(alerts.router)


@app.get("/api/v1/health")
def health():
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))
    return {"status": "ok"}
