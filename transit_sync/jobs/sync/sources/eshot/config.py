import os
from dataclasses import dataclass

from transit_sync.jobs.sync.sources.http import HttpSettings


@dataclass(frozen=True)
class EshotConfig:
    username: str
    password: str

    login_url: str
    anonymous_user_url: str
    search_url: str
    line_detail_url: str

    datastore_url: str
    lines_resource_id: str
    page_size: int

    http: HttpSettings

    search_delay: float
    line_delay: float
    agency_id: int
    progress_every: int


def load_config() -> EshotConfig:
    api = os.getenv("ESHOT_API_BASE_URL", "https://appapi.eshot.gov.tr/api").rstrip("/")

    return EshotConfig(
        # fixed public account used by the ESHOT mobile app
        username=os.getenv("ESHOT_USERNAME", "tur"),
        password=os.getenv("ESHOT_PASSWORD", "t@r!"),
        login_url=f"{api}/Transportation/Login",
        anonymous_user_url=f"{api}/TransportationUser/getAnonymousUser",
        search_url=os.getenv("ESHOT_SEARCH_URL", f"{api}/Transportation/SearchLine"),
        line_detail_url=os.getenv("ESHOT_LINE_DETAIL_URL", f"{api}/Transportation/GetLineDetail"),
        datastore_url=os.getenv(
            "ESHOT_DATASTORE_URL", "https://acikveri.bizizmir.com/api/3/action/datastore_search"
        ),
        lines_resource_id=os.getenv("ESHOT_LINES_RESOURCE_ID", "bd6c84f8-49ba-4cf4-81f8-81a0fbb5caa3"),
        page_size=int(os.getenv("ESHOT_PAGE_SIZE", "100")),
        http=HttpSettings(
            connect_timeout=float(os.getenv("ESHOT_CONNECT_TIMEOUT_SECONDS", "10")),
            read_timeout=float(os.getenv("ESHOT_READ_TIMEOUT_SECONDS", "60")),
            write_timeout=float(os.getenv("ESHOT_WRITE_TIMEOUT_SECONDS", "30")),
            pool_timeout=float(os.getenv("ESHOT_POOL_TIMEOUT_SECONDS", "30")),
            retries=int(os.getenv("ESHOT_RETRIES", "3")),
            backoff_base=float(os.getenv("ESHOT_BACKOFF_BASE_SECONDS", "1.5")),
        ),
        search_delay=float(os.getenv("ESHOT_SEARCH_DELAY_SECONDS", "1")),
        line_delay=float(os.getenv("ESHOT_LINE_DELAY_SECONDS", "1")),
        agency_id=int(os.getenv("ESHOT_AGENCY_ID", "2")),
        progress_every=int(os.getenv("ESHOT_PROGRESS_EVERY", "25")),
    )
