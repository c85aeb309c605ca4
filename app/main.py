import logging
import os

from fastapi import FastAPI
from app.settings import settings
from app.logging import configure_logging
from app.error_handlers import attach_error_handlers
from app.container import get_job_queue
from api.router import api_router
from infra.db.session import init_db

configure_logging()
logger = logging.getLogger(__name__)
app = FastAPI(title=settings.APP_NAME)


@app.on_event("startup")
def _on_startup():
    os.makedirs(settings.STORAGE_DIR, exist_ok=True)
    init_db()
    logger.info("%s started (env=%s)", settings.APP_NAME, settings.ENV)


@app.on_event("shutdown")
async def _on_shutdown():
    # let in-flight evaluations finish writing their terminal status
    await get_job_queue().drain()


attach_error_handlers(app)
app.include_router(api_router)
