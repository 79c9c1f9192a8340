import logging

from fastapi import FastAPI

from breaker.api.routes import router
from breaker.config import settings_from_env

app = FastAPI(title="heatmap-breaker", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=settings_from_env().log_level)
logger = logging.getLogger(__name__)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "heatmap-breaker", "version": "0.1.0"}


@app.on_event("startup")
async def _startup() -> None:
    logger.info("heatmap-breaker started")
