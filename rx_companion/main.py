from fastapi import FastAPI
from rx_companion.core.logging_config import configure_logging
from rx_companion.api.routes_rx import router as rx_router
from rx_companion.api.routes_review import router as review_router
from rx_companion.api.routes_events import router as events_router

configure_logging()

app = FastAPI(title="Rx Companion (prescription parser + reminder scheduler)", version="1.0")

app.include_router(rx_router)
app.include_router(review_router)
app.include_router(events_router)

@app.get("/health")
def health():
    return {"ok": True}

@app.get("/")
def root():
    return {"ok": True, "service": "Rx Companion (prescription parser + reminder scheduler)"}
