from pathlib import Path
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".jobboard"
    api_prefix: str = "/api/v1"
    host: str = "127.0.0.1"
    port: int = 8000
    log_level: str = "INFO"
    # Applicants below this profile completion percentage cannot apply.
    min_profile_completion: float = 70.0
    # Broadcast fan-out: rows fetched per audience page and concurrent writers per page.
    broadcast_batch_size: int = 1000
    broadcast_max_workers: int = 8
    notifications_default_limit: int = 10
    notifications_max_limit: int = 100
    token_ttl_seconds: int = 7 * 24 * 3600

    @property
    def db_path(self) -> Path:
        return self.data_dir / "jobboard.sqlite"

    model_config = {"env_prefix": "JOBBOARD_"}


settings = Settings()
