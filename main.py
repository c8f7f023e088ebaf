from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from starlette.middleware.sessions import SessionMiddleware
import logging
import os
import config
import db_sqlalchemy
from handlers import (
    AVATARS_URL_PATH, create_paste_handler, get_paste_handler, paste_count_handler,
    register_handler, get_self_handler, logout_handler, patch_avatar_handler, health_handler
)

logging.basicConfig(
    level=config.get_log_level(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # startup
    os.makedirs(config.get_avatars_dir(), exist_ok=True)
    await db_sqlalchemy.init_db()
    await db_sqlalchemy.database.connect()
    logger.info("Connected to %s", db_sqlalchemy.DB_URL)
    yield
    # shutdown
    await db_sqlalchemy.database.disconnect()

# Create FastAPI app
app = FastAPI(title="PasteMyst API", lifespan=lifespan)
app.add_middleware(SessionMiddleware, secret_key=config.get_secret_key())

# CORS - allow all origins in dev, configure in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.post("/api/v3/pastes", status_code=201)(create_paste_handler)
app.get("/api/v3/pastes/{id}")(get_paste_handler)
app.get("/api/v3/meta/pastes")(paste_count_handler)
app.post("/api/v3/auth/register")(register_handler)
app.get("/api/v3/auth/self")(get_self_handler)
app.get("/api/v3/auth/logout")(logout_handler)
app.patch("/api/v3/settings/avatar")(patch_avatar_handler)
app.get("/health")(health_handler)

# Locally hosted avatars; the directory is created in lifespan
app.mount(AVATARS_URL_PATH, StaticFiles(directory=config.get_avatars_dir(), check_dir=False), name="avatars")
