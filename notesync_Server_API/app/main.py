# main.py
# Description: This file contains the main FastAPI application, which serves as the primary API for the notesync server.
#
# Imports
import logging
import sys
from contextlib import asynccontextmanager
#
# 3rd-party Libraries
from loguru import logger
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
#
# Local Imports
from notesync_Server_API.app.core.config import settings, ALLOWED_ORIGINS
from notesync_Server_API.app.api.v1.API_Deps.NoteSync_DB_Deps import close_all_notesync_db_instances
#
# Sync Endpoint
from notesync_Server_API.app.api.v1.endpoints.sync import router as sync_router
#
# Notes & Folders Endpoints
from notesync_Server_API.app.api.v1.endpoints.notes import router as notes_router, folders_router
#
# Conversations Endpoint
from notesync_Server_API.app.api.v1.endpoints.conversations import router as conversations_router
#
########################################################################################################################
#
# Functions:


# --- Loguru Configuration with Intercept Handler ---

# Define a handler class to intercept standard logging messages
class InterceptHandler(logging.Handler):
    def emit(self, record):
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )


logger.remove()
logger.add(
    sys.stderr,
    level=settings["LOG_LEVEL"],
    format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    colorize=True,
)

# The DB layer and the sync engine log through standard logging.
loggers_to_intercept = ["uvicorn", "uvicorn.error", "uvicorn.access", "notesync_Server_API"]
for logger_name in loggers_to_intercept:
    mod_logger = logging.getLogger(logger_name)
    mod_logger.handlers = [InterceptHandler()]
    mod_logger.propagate = False
    if logger_name == "notesync_Server_API":
        mod_logger.setLevel(settings["LOG_LEVEL"])


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    logger.info("App Shutdown: Closing DB connections")
    close_all_notesync_db_instances()


app = FastAPI(
    title="notesync API",
    version="0.1.0",
    description="Offline sync and note/folder lifecycle backend",
    lifespan=lifespan,
)

origins = ALLOWED_ORIGINS if ALLOWED_ORIGINS else ["*"]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root():
    return {"message": "Welcome to the notesync API; If you're seeing this, the server is running!"}


@app.get("/health")
async def health():
    return {"status": "ok"}


app.include_router(sync_router, prefix="/api/v1/sync", tags=["sync"])
app.include_router(notes_router, prefix="/api/v1/notes", tags=["notes"])
app.include_router(folders_router, prefix="/api/v1/folders", tags=["folders"])
app.include_router(conversations_router, prefix="/api/v1/conversations", tags=["conversations"])

#
# End of main.py
#######################################################################################################################
