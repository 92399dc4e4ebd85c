import logging
import os
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from tubely.api.upload import router as upload_router
from tubely.api.videos import router as videos_router
from tubely.core.config import settings
from tubely.core.database import init_db

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

app = FastAPI(title="Tubely API", version="0.1.0")

cors_origins = ["http://localhost:3000"]
allowed_origins_env = os.getenv("ALLOWED_ORIGINS", "")
if allowed_origins_env:
    cors_origins.extend([origin.strip() for origin in allowed_origins_env.split(",")])

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(upload_router)
app.include_router(videos_router)

# check_dir=False: the directory is created on startup
app.mount("/assets", StaticFiles(directory=settings.assets_root, check_dir=False), name="assets")


@app.on_event("startup")
async def startup_event():
    logger.info("Starting application startup sequence...")
    os.makedirs(settings.assets_root, exist_ok=True)
    logger.info(f"Assets directory created/verified: {settings.assets_root}")

    # Tests provide their own database
    if not os.environ.get("TESTING"):
        init_db()

    logger.info(f"Video URL mode: {settings.video_url_mode}, faststart: {settings.faststart_enabled}")
    logger.info("Application startup sequence completed - server ready to accept requests")


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/ready")
async def ready():
    return {"status": "ready"}
