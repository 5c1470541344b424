import os
from pathlib import Path
from dotenv import load_dotenv
from fastapi import Request

BASE_DIR = Path(__file__).resolve().parent.parent  # -> project root

# Load .env explicitly from project root
load_dotenv(BASE_DIR / ".env")


class Settings:
    """Runtime configuration read from the environment.

    Keyword overrides take precedence over environment variables, which lets
    tests and embedding code build isolated applications.
    """

    def __init__(self, **overrides):
        self.PROJECT_NAME = os.getenv("PROJECT_NAME", "User Directory")

        self.DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./user_directory.db")

        self.JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
        self.ALGORITHM = os.getenv("ALGORITHM", "HS256")
        self.ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60))
        self.BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 10))

        self.UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
        self.MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", 5 * 1024 * 1024))

        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self.cors_origins = [
            origin.strip()
            for origin in os.getenv("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        ]

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    @property
    def upload_root(self) -> Path:
        return Path(self.UPLOAD_DIR)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
