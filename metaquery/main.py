import logging

from fastapi import FastAPI

from metaquery.core.config import get_settings
from metaquery.metadata.controllers import router as metadata_router


settings = get_settings()

logging.basicConfig(
	level=settings.log_level.upper(),
	format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)

app = FastAPI(
	title=settings.app_name,
	version=settings.app_version,
)


app.include_router(metadata_router, prefix="/api/v1")
