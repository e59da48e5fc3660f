from pydantic_settings import BaseSettings
from pathlib import Path

# Get the project root directory (parent of backend folder)
PROJECT_ROOT = Path(__file__).parent.parent

class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""
    database_url: str = "sqlite:///./study_planner.db"

    # Scheduling windows
    horizon_days: int = 14
    full_schedule_days: int = 30
    default_topics_per_day: int = 5

    log_level: str = "INFO"

    class Config:
        env_file = str(PROJECT_ROOT / ".env")

settings = Settings()
