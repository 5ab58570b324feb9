# app/config.py
import os
from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import List
from dotenv import load_dotenv
load_dotenv()

class Settings(BaseSettings):
    # Application Settings
    allowed_origins: List[str] = ["http://localhost:8080"]
    port: int = 8080
    log_level: str = "INFO"
    public_dir: str = "./public"

    # Google Cloud / Firestore Configuration
    project_id: str = ""
    database: str = "(default)"

    # Firestore collections holding the travel sample and user data
    airports_collection: str = "airports"
    airlines_collection: str = "airlines"
    routes_collection: str = "routes"
    hotels_collection: str = "hotels"
    users_collection: str = "users"
    flights_collection: str = "flights"

    # Elasticsearch (hotel full-text search)
    elasticsearch_url: str = "http://localhost:9200"
    elasticsearch_username: str = ""
    elasticsearch_password: str = ""
    hotel_index: str = "hotels"
    hotel_search_limit: int = 100

    # Token signing
    jwt_secret: str = "UNSECURE_SECRET_TOKEN"
    jwt_algorithm: str = "HS256"

    model_config = ConfigDict(
        env_file=".env",
        extra="ignore"  # Allow extra environment variables without validation errors
    )

class CloudRunConfig:
    """Configuration for Cloud Run deployment"""

    # Environment Detection
    IS_CLOUD_RUN: bool = os.getenv("K_SERVICE") is not None

    PROJECT_ID: str = os.getenv("GOOGLE_CLOUD_PROJECT", "")
    PORT: int = int(os.getenv("PORT", "8080"))
    DATABASE: str = os.getenv("DATABASE", "(default)")

settings = Settings()
cloud_config = CloudRunConfig()
