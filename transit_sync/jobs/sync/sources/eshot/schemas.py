from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class EshotModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)


class EshotLine(EshotModel):
    line_code: str = Field(..., alias="HAT_NO")
    line_name: str = Field(..., alias="HAT_ADI")
    line_start: Optional[str] = Field(None, alias="HAT_BASLANGIC")
    line_end: Optional[str] = Field(None, alias="HAT_BITIS")


class EshotToken(EshotModel):
    token: str = Field(..., alias="Item1")


class EshotTokenResponse(EshotModel):
    data: EshotToken


class EshotSearchResult(EshotModel):
    id: int
    code: str


class EshotStation(EshotModel):
    lat: Optional[float] = None
    lng: Optional[float] = None
    name: str
    code: str


class EshotTime(EshotModel):
    time: str
    day: int


class EshotDirection(EshotModel):
    direction: int
    tracks: list[Optional[str]] = Field(default_factory=list)
    stations: list[dict] = Field(default_factory=list)
    times: list[dict] = Field(default_factory=list)
