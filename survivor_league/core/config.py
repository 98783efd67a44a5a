from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    app_name: str = "Survivor League"
    debug: bool = False
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    # Database
    database_url: str = "postgresql://localhost:5432/survivor_league"

    # Roster
    draft_roster_size: int = 2  # regular picks per player, sole survivor excluded

    # Sole survivor bonus
    sole_survivor_points_per_episode: int = 1
    sole_survivor_winner_bonus: int = 0  # e.g. 25 for a pick held from early in the season
    winner_bonus_deadline_episode: int = 2  # pick must be held from this episode or earlier

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache()
def get_settings() -> Settings:
    return Settings()
