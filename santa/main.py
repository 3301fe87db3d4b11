from __future__ import annotations

import logging

from fastapi import FastAPI

from santa.api.routes import router
from santa.infra.settings import load_settings

# Configure logging
logging.basicConfig(level=load_settings().log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="secret-santa", version="0.1.0")
app.include_router(router)


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "secret-santa", "version": "0.1.0"}
