from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Truck ETA API"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    # CORS: comma-separated origins. Defaults cover the Vite dev server and the deployed static web app.
    cors_origins: str = "http://localhost:5173,https://victorious-meadow-099b28103.4.azurestaticapps.net"

    # Route source (Iceman tracker API)
    route_source_base_url: str = "https://iceman-prod.azurewebsites.net/api/tracker"
    route_timezone: str = "Europe/Stockholm"  # Zone the tracker's scheduled stop times are given in
    route_cache_ttl_minutes: float = 30.0
    upstream_timeout_seconds: float = 10.0

    # Travel times: "openrouteservice" | "osrm" | "straight_line"
    routing_provider: str = "openrouteservice"
    ors_api_key: str = ""  # OpenRouteService API key (get at openrouteservice.org/dev)
    ors_base_url: str = "https://api.openrouteservice.org/v2"
    osrm_base_url: str = "http://router.project-osrm.org"
    straight_line_speed_mps: float = 8.3  # Only used by the straight_line provider


def get_settings() -> Settings:
    return Settings()
