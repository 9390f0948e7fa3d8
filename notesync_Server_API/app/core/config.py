# config.py
# Description: Configuration settings for the notesync server application.
#
# Imports
import os
from pathlib import Path
from typing import List
#
# 3rd-party Libraries
from loguru import logger
#
########################################################################################################################
#
# Functions:

DEFAULT_SINGLE_USER_API_KEY = "default-secret-key-for-single-user"
DEFAULT_JWT_SECRET_KEY = "a_very_insecure_default_secret_key_for_dev_only"


def _parse_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def load_settings():
    """Loads all settings from environment variables or defaults into a dictionary."""

    # --- Application Mode ---
    single_user_mode_str = os.getenv("APP_MODE", "single").lower()
    single_user_mode = single_user_mode_str != "multi"

    # --- Single-User Settings ---
    # Owner identity used for every request in single-user mode
    single_user_fixed_id = os.getenv("SINGLE_USER_FIXED_ID", "0")
    single_user_api_key = os.getenv("API_KEY", DEFAULT_SINGLE_USER_API_KEY)

    # --- Multi-User Settings (JWT) ---
    jwt_secret_key = os.getenv("JWT_SECRET_KEY", DEFAULT_JWT_SECRET_KEY)
    jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")
    access_token_expire_minutes = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "30"))

    # --- Database Settings ---
    notesync_db_path = Path(os.getenv("NOTESYNC_DB_PATH", "./notesync_data/notesync.sqlite"))

    # --- Sync ---
    sync_max_batch_items = int(os.getenv("SYNC_MAX_BATCH_ITEMS", "5000"))

    # --- Logging ---
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    config_dict = {
        # General App
        "APP_MODE_STR": single_user_mode_str,
        "SINGLE_USER_MODE": single_user_mode,
        "LOG_LEVEL": log_level,
        "ALLOWED_ORIGINS": _parse_origins(os.getenv("ALLOWED_ORIGINS", "")),

        # Single User
        "SINGLE_USER_FIXED_ID": single_user_fixed_id,
        "SINGLE_USER_API_KEY": single_user_api_key,

        # Multi User / Auth
        "JWT_SECRET_KEY": jwt_secret_key,
        "JWT_ALGORITHM": jwt_algorithm,
        "ACCESS_TOKEN_EXPIRE_MINUTES": access_token_expire_minutes,

        # Database
        "NOTESYNC_DB_PATH": notesync_db_path,

        # Sync
        "SYNC_MAX_BATCH_ITEMS": sync_max_batch_items,
    }

    if config_dict["SINGLE_USER_MODE"] and config_dict["SINGLE_USER_API_KEY"] == DEFAULT_SINGLE_USER_API_KEY:
        logger.warning("Using default API_KEY for single-user mode. Set the API_KEY environment variable for security.")
    if not config_dict["SINGLE_USER_MODE"] and config_dict["JWT_SECRET_KEY"] == DEFAULT_JWT_SECRET_KEY:
        logger.warning("SECURITY WARNING: Using default JWT_SECRET_KEY in multi-user mode. "
                       "Set a strong JWT_SECRET_KEY environment variable!")

    return config_dict


settings = load_settings()

ALLOWED_ORIGINS = settings["ALLOWED_ORIGINS"]

#
# End of config.py
#######################################################################################################################
