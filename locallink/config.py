"""Application configuration loaded from environment variables."""

from pydantic_settings import BaseSettings
from pydantic import Field
from functools import lru_cache


class Settings(BaseSettings):
    """Centralised settings; no hardcoded values anywhere else."""

    # Database (Review Store)
    database_url: str = Field("sqlite+aiosqlite:///./locallink.db")

    # Commercial-directory provider (Yelp Fusion)
    yelp_api_key: str = Field("")
    yelp_api_base_url: str = Field("https://api.yelp.com/v3")
    yelp_page_size: int = Field(50)
    yelp_max_results: int = Field(200)

    # Geographic-tag provider (OpenStreetMap Overpass)
    overpass_url: str = Field("https://overpass-api.de/api/interpreter")
    overpass_enabled: bool = Field(True)

    # Image resolution (Google Custom Search)
    google_search_api_key: str = Field("")
    google_search_engine_id: str = Field("")

    # Catalog area: Cumming, Georgia, 10 mile radius
    center_lat: float = Field(34.2073)
    center_lon: float = Field(-84.1402)
    search_radius_meters: int = Field(16093)
    city_name: str = Field("Cumming")

    # Provider calls and caching
    provider_timeout_seconds: float = Field(15.0)
    image_timeout_seconds: float = Field(10.0)
    image_search_concurrency: int = Field(5)
    catalog_cache_ttl_seconds: int = Field(3600)
    image_cache_ttl_seconds: int = Field(86_400)

    # Offline snapshot
    offline_mode: bool = Field(False)
    offline_data_dir: str = Field("./data")

    # Catalog extras
    trending_business_names: str = Field("Raising Cane's,Kung Fu Tea,Marlow's Tavern")

    # Security
    allowed_origins: str = Field("http://localhost:5173,http://localhost:3000")

    # App
    app_env: str = Field("development")
    log_level: str = Field("INFO")

    # Derived
    @property
    def allowed_origins_list(self) -> list[str]:
        """Return ALLOWED_ORIGINS as a list."""
        return [o.strip() for o in self.allowed_origins.split(",")]

    @property
    def trending_names_list(self) -> list[str]:
        """Return TRENDING_BUSINESS_NAMES as a list."""
        return [n.strip() for n in self.trending_business_names.split(",") if n.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "extra": "ignore"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached Settings instance."""
    return Settings()
