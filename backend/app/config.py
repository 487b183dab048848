from __future__ import annotations

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Upstream open-data services (no credentials required)
    locatieserver_url: str = "https://api.pdok.nl/bzk/locatieserver/search/v3_1/free"
    bag_wfs_url: str = "https://service.pdok.nl/lv/bag/wfs/v2_0"
    bag_legacy_wfs_url: str = "https://geodata.nationaalgeoregister.nl/bag/wfs"
    bag3d_url: str = "https://api.3dbag.nl/v3/tiles"
    wijkenbuurten_wfs_url: str = "https://geodata.nationaalgeoregister.nl/wijkenbuurten/wfs"
    cbs_arcgis_services: list[str] = [
        "https://services.arcgis.com/nSZVuSZjHpEZZbRo/arcgis/rest/services/CBS_Buurten_2023/FeatureServer/0",
        "https://services.arcgis.com/nSZVuSZjHpEZZbRo/arcgis/rest/services/CBS_Buurten_2022/FeatureServer/0",
    ]

    # Fetching
    fetch_attempts: int = 3
    fetch_retry_delay: float = 0.8  # seconds, multiplied by the attempt index
    fetch_timeout: float = 15.0
    neighbourhood_fetch_attempts: int = 1

    # Fallbacks applied by the building pipeline
    default_footprint_area_m2: float = 400.0
    default_height_m: float = 12.0

    # Query envelopes (degrees)
    footprint_bbox_pad: float = 0.0005
    neighbourhood_bbox_pad: float = 0.004

    log_level: str = "INFO"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
    ]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
