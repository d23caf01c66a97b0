"""
BadgePress Main Application
- Serves the badge admin API and the managed badge images.
"""

from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.staticfiles import StaticFiles

from badgepress.apps.admin.routes import router as admin_router
from badgepress.config import settings
from badgepress.core.data.database import create_tables, get_database_info
from badgepress.core.error_handlers import register_error_handlers
from badgepress.logging_config import setup_logging

setup_logging()


@asynccontextmanager
async def lifespan(_: FastAPI):
    """Application startup tasks"""
    create_tables()
    yield


app = FastAPI(
    title="BadgePress",
    description="Badge records with designer image ingestion",
    version="0.1.0",
    debug=settings.DEBUG,
    lifespan=lifespan,
)

register_error_handlers(app)

UPLOAD_DIR = Path(settings.UPLOAD_DIR).resolve()
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)

app.mount(settings.UPLOAD_URL_PREFIX, StaticFiles(directory=UPLOAD_DIR), name="uploads")

app.include_router(admin_router)


@app.get("/api/health")
def health():
    """Liveness and database status"""
    database = get_database_info()
    return {"status": "ok" if database["connected"] else "degraded", "database": database}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
