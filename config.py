"""Application settings loaded from the environment"""
import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()

BASE_DIR = Path(__file__).parent


class Settings(BaseModel):
    """Runtime configuration for the notes API"""

    # Storage
    NOTES_FILE: Path = BASE_DIR / os.getenv("NOTES_FILE", "notes.json")

    # Event journal
    LOG_FILE: Path = BASE_DIR / os.getenv("LOG_FILE", "logs.jsonl")
    LOG_MAX_BYTES: int = int(os.getenv("LOG_MAX_BYTES", str(1024 * 1024)))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Server
    HOST: str = os.getenv("HOST", "0.0.0.0")
    PORT: int = int(os.getenv("PORT", "3000"))

    # CORS - comma-separated; "*" allows any origin without credentials
    CORS_ORIGINS: List[str] = [
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
        if origin.strip()
    ]


settings = Settings()
