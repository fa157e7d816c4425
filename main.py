from fastapi import FastAPI

from api.router import router as monitoring_router
from core.logging_config import configure_logging

configure_logging()

app = FastAPI(title="Fire Alert Session Engine")
app.include_router(monitoring_router)
