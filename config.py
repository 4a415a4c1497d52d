import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class Settings:
    # Remote book API
    api_base_url: str = os.getenv("BOOK_API_BASE_URL", "http://elnidoleatherback.com/nu/nextgen_v1/api")
    api_timeout: float = float(os.getenv("BOOK_API_TIMEOUT", "10"))
    api_connect_timeout: float = float(os.getenv("BOOK_API_CONNECT_TIMEOUT", "5"))

    # Logging
    log_level: str = os.getenv("LOG_LEVEL", "WARNING").upper()
    debug: bool = _flag("DEBUG", "False")

    # Carousel
    carousel_slides_to_show: int = int(os.getenv("CAROUSEL_SLIDES_TO_SHOW", "3"))
    carousel_slides_to_scroll: int = int(os.getenv("CAROUSEL_SLIDES_TO_SCROLL", "1"))
    carousel_infinite: bool = _flag("CAROUSEL_INFINITE", "True")
    carousel_dots: bool = _flag("CAROUSEL_DOTS", "True")

    # Application
    app_name: str = os.getenv("APP_NAME", "Manage Books")

    @property
    def effective_log_level(self) -> str:
        return "DEBUG" if self.debug else self.log_level


settings = Settings()
