import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # API settings
    api_host: str = os.getenv("API_HOST", "localhost")
    api_port: int = int(os.getenv("API_PORT", "3001"))
    api_base_url: str = field(default_factory=lambda: os.getenv("API_BASE_URL", ""))

    # CLI client
    client_timeout: float = float(os.getenv("CLIENT_TIMEOUT", "10"))

    # Store
    seed_books: bool = _env_flag("SEED_BOOKS", "True")

    # Application
    app_name: str = os.getenv("APP_NAME", "Book Checkout API")
    app_version: str = os.getenv("APP_VERSION", "1.0.0")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    debug: bool = _env_flag("DEBUG", "False")

    def __post_init__(self) -> None:
        if not self.api_base_url:
            self.api_base_url = f"http://{self.api_host}:{self.api_port}"


settings = Settings()
