# config.py
# ============================================================================
# DJTUNEZ BACKEND: CONFIGURATION
# ============================================================================
# Environment-driven settings shared by the API, storage and providers
# ============================================================================

import os
from typing import Optional


class AppConfig:
    """Application configuration from environment"""

    # Server
    HOST = os.getenv("HOST", "0.0.0.0")
    PORT = int(os.getenv("PORT", "8080"))
    ENV = os.getenv("ENV", os.getenv("NODE_ENV", "development"))
    DEBUG = ENV == "development"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # CORS
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")
    ALLOWED_ORIGIN_HOST = os.getenv("ALLOWED_ORIGIN_HOST", "djtunez.com")

    # Firebase
    GOOGLE_CLOUD_PROJECT = os.getenv("GOOGLE_CLOUD_PROJECT", "djtunez")
    FIREBASE_DATABASE_URL: Optional[str] = os.getenv("FIREBASE_DATABASE_URL")
    FIREBASE_APP_NAME = os.getenv("FIREBASE_APP_NAME", "djtunez-rtdb")

    # Stripe
    STRIPE_SECRET_KEY: Optional[str] = os.getenv("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET: Optional[str] = os.getenv("STRIPE_WEBHOOK_SECRET")

    # Spotify
    SPOTIFY_CLIENT_ID: Optional[str] = os.getenv("SPOTIFY_CLIENT_ID")
    SPOTIFY_CLIENT_SECRET: Optional[str] = os.getenv("SPOTIFY_CLIENT_SECRET")
    SPOTIFY_TOKEN_URL = "https://accounts.spotify.com/api/token"

    # Budget for a single store / provider call
    EXTERNAL_CALL_TIMEOUT_SECONDS = float(os.getenv("EXTERNAL_CALL_TIMEOUT_SECONDS", "10"))

    @property
    def database_url(self) -> str:
        """Realtime Database URL: hosted in production, emulator otherwise."""
        if self.ENV == "production":
            return f"https://{self.GOOGLE_CLOUD_PROJECT}-default-rtdb.firebaseio.com"
        return self.FIREBASE_DATABASE_URL or (
            f"http://127.0.0.1:9000/?ns={self.GOOGLE_CLOUD_PROJECT}-default-rtdb"
        )


config = AppConfig()
