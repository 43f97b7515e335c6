from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class IettModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", coerce_numbers_to_str=True)


class IettLine(IettModel):
    line_code: str = Field(..., alias="SHATKODU")
    line_name: str = Field(..., alias="SHATADI")
    line_length: Optional[float] = Field(None, alias="HAT_UZUNLUGU")
    duration: Optional[float] = Field(None, alias="SEFER_SURESI")


class IettTokenResponse(IettModel):
    access_token: str
    token_type: Optional[str] = None
    expires_in: Optional[int] = None


class IettRoute(IettModel):
    route_code: str = Field(..., alias="GUZERGAH_GUZERGAH_KODU")
    route_name: Optional[str] = Field(None, alias="GUZERGAH_GUZERGAH_ADI")
    description: Optional[str] = Field(None, alias="GUZERGAH_ACIKLAMA")


class IettStop(IettModel):
    line_code: Optional[str] = Field(None, alias="HATKODU")
    direction: Optional[str] = Field(None, alias="YON")
    order: Optional[int] = Field(None, alias="SIRANO")
    stop_code: int = Field(..., alias="DURAKKODU")
    stop_name: str = Field(..., alias="DURAKADI")
    x: Optional[float] = Field(None, alias="XKOORDINATI")
    y: Optional[float] = Field(None, alias="YKOORDINATI")
    district: Optional[str] = Field(None, alias="ILCEADI")
    route_code: Optional[str] = Field(None, alias="GUZERGAH_KODU")


class IettRoutePath(IettModel):
    route_code: str = Field(..., alias="GUZERGAH_GUZERGAH_KODU")
    geoloc: Optional[str] = Field(None, alias="GUZERGAH_GEOLOC")


class IettScheduledTime(IettModel):
    line_code: Optional[str] = Field(None, alias="SHATKODU")
    route_code: str = Field(..., alias="SGUZERAH")
    direction: Optional[str] = Field(None, alias="SYON")
    day_type: str = Field(..., alias="SGUNTIPI")
    time: str = Field(..., alias="DT")
