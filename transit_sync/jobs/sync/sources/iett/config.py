import os
from dataclasses import dataclass
from typing import Optional

from transit_sync.core.errors import ConfigurationError
from transit_sync.jobs.sync.sources.http import HttpSettings


@dataclass(frozen=True)
class IettConfig:
    client_id: str
    client_secret: str
    scope: str

    token_url: str
    service_url: str
    soap_url: str

    routes_alias: str
    stops_alias: str
    route_path_alias: str
    directions: tuple[str, ...]

    path_cache: str
    path_snapshot_url: Optional[str]
    path_feature_key: str

    http: HttpSettings
    snapshot_read_timeout: float

    line_delay: float
    agency_id: int
    progress_every: int


def load_config() -> IettConfig:
    client_id = os.getenv("IBB_CLIENT_ID")
    client_secret = os.getenv("IBB_CLIENT_SECRET")
    scope = os.getenv("IBB_CLIENT_SCOPE")
    if not client_id or not client_secret or not scope:
        raise ConfigurationError("IBB_CLIENT_ID/IBB_CLIENT_SECRET/IBB_CLIENT_SCOPE not set in .env")

    return IettConfig(
        client_id=client_id,
        client_secret=client_secret,
        scope=scope,
        token_url=os.getenv("IETT_TOKEN_URL", "https://ntcapi.iett.istanbul/oauth2/v2/auth"),
        service_url=os.getenv("IETT_SERVICE_URL", "https://ntcapi.iett.istanbul/service"),
        soap_url=os.getenv(
            "IETT_SOAP_URL", "https://api.ibb.gov.tr/iett/UlasimAnaVeri/HatDurakGuzergah.asmx"
        ),
        routes_alias=os.getenv("IETT_ROUTES_ALIAS", "mainGetRoute"),
        stops_alias=os.getenv("IETT_STOPS_ALIAS", "mainGetLineStops"),
        route_path_alias=os.getenv("IETT_ROUTE_PATH_ALIAS", "mainGetRoutePath"),
        directions=("G", "D"),
        path_cache=os.getenv("IETT_PATH_CACHE", "./data/path.geojson"),
        path_snapshot_url=os.getenv("IETT_PATH_SNAPSHOT_URL") or None,
        path_feature_key=os.getenv("IETT_PATH_FEATURE_KEY", "GUZERGAH_K"),
        http=HttpSettings(
            connect_timeout=float(os.getenv("IETT_CONNECT_TIMEOUT_SECONDS", "10")),
            read_timeout=float(os.getenv("IETT_READ_TIMEOUT_SECONDS", "60")),
            write_timeout=float(os.getenv("IETT_WRITE_TIMEOUT_SECONDS", "30")),
            pool_timeout=float(os.getenv("IETT_POOL_TIMEOUT_SECONDS", "30")),
            retries=int(os.getenv("IETT_RETRIES", "3")),
            backoff_base=float(os.getenv("IETT_BACKOFF_BASE_SECONDS", "1.5")),
        ),
        snapshot_read_timeout=float(os.getenv("IETT_SNAPSHOT_READ_TIMEOUT_SECONDS", "300")),
        line_delay=float(os.getenv("IETT_LINE_DELAY_SECONDS", "5")),
        agency_id=int(os.getenv("IETT_AGENCY_ID", "1")),
        progress_every=int(os.getenv("IETT_PROGRESS_EVERY", "25")),
    )
