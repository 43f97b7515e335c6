"""
IETT SOAP helpers.

The *_json SOAP methods answer with an XML envelope whose <{method}Result>
element holds a JSON string, so every response is unwrapped twice:
XML first, then the extracted text as JSON.
"""

import json
import logging
import xml.etree.ElementTree as ET
from typing import Mapping, Optional
from xml.sax.saxutils import escape

import httpx

from transit_sync.core.errors import UpstreamDecodeError
from transit_sync.jobs.sync.sources.http import HttpSettings, send_with_retry

logger = logging.getLogger(__name__)

SOAP_NS = "http://schemas.xmlsoap.org/soap/envelope/"
TEMPURI_NS = "http://tempuri.org/"


def build_envelope(method: str, params: Optional[Mapping[str, str]] = None) -> str:
    body = "".join(
        f"<{k}>{escape(v or '')}</{k}>" for k, v in (params or {}).items()
    )
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f'<soap:Envelope xmlns:soap="{SOAP_NS}">'
        "<soap:Body>"
        f'<{method} xmlns="{TEMPURI_NS}">{body}</{method}>'
        "</soap:Body>"
        "</soap:Envelope>"
    )


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def extract_result_text(xml_text: str, method: str) -> str:
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise UpstreamDecodeError(f"{method}: response is not XML: {e}") from e

    wanted = f"{method}Result"
    for el in root.iter():
        if _local(el.tag) == wanted:
            return el.text or ""
    raise UpstreamDecodeError(f"{method}: <{wanted}> not found in SOAP response")


def decode_soap_json(xml_text: str, method: str):
    content = extract_result_text(xml_text, method)
    if not content.strip():
        return []
    try:
        return json.loads(content)
    except json.JSONDecodeError as e:
        raise UpstreamDecodeError(f"{method}: result is not JSON: {e}") from e


def call_soap_json(
    cfg: HttpSettings,
    client: httpx.Client,
    url: str,
    method: str,
    params: Optional[Mapping[str, str]] = None,
):
    logger.debug("SOAP %s params=%s", method, dict(params or {}))
    r = send_with_retry(
        cfg,
        client,
        "POST",
        url,
        content=build_envelope(method, params).encode("utf-8"),
        headers={
            "Content-Type": "text/xml; charset=UTF-8",
            "SOAPAction": f'"{TEMPURI_NS}{method}"',
        },
    )
    return decode_soap_json(r.text, method)
