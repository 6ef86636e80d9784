from fastapi import FastAPI

from lexnav.api.routes import router
from lexnav.core.config import get_settings
from lexnav.core.logging import configure_logging

configure_logging(get_settings().log_level)

app = FastAPI(title="Lexnav")
app.include_router(router)
