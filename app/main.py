import logging

from fastapi import FastAPI

from app.api.tables import router as tables_router
from app.errors import register_error_handlers
from app.logging import configure_logging

app = FastAPI(title="admin_tables API")
logger = logging.getLogger(__name__)
configure_logging()
register_error_handlers(app)

app.include_router(tables_router)


@app.get("/health")
def health_check():
    return {"status": "ok"}
