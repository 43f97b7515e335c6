import json
from xml.sax.saxutils import escape

import httpx
import pytest

from transit_sync.core.errors import UpstreamDecodeError
from transit_sync.jobs.sync.sources.http import make_client
from transit_sync.jobs.sync.sources.iett.soap import build_envelope, call_soap_json, decode_soap_json


def soap_response(method: str, payload) -> str:
    body = escape(json.dumps(payload))
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<soap:Envelope xmlns:soap="http://schemas.xmlsoap.org/soap/envelope/">'
        "<soap:Body>"
        f'<{method}Response xmlns="http://tempuri.org/">'
        f"<{method}Result>{body}</{method}Result>"
        f"</{method}Response>"
        "</soap:Body>"
        "</soap:Envelope>"
    )


def test_envelope_carries_method_and_params():
    xml = build_envelope("GetHat_json", {"HatKodu": "34A&B"})
    assert "<GetHat_json" in xml
    assert "<HatKodu>34A&amp;B</HatKodu>" in xml


def test_double_decode():
    payload = [{"SHATKODU": "34A", "SHATADI": "Söğütlüçeşme - Zincirlikuyu"}]
    assert decode_soap_json(soap_response("GetHat_json", payload), "GetHat_json") == payload


def test_not_xml_raises():
    with pytest.raises(UpstreamDecodeError):
        decode_soap_json("{not xml", "GetHat_json")


def test_missing_result_element_raises():
    with pytest.raises(UpstreamDecodeError):
        decode_soap_json(soap_response("Other", []), "GetHat_json")


def test_result_not_json_raises():
    xml = soap_response("GetHat_json", []).replace("[]", "not json")
    with pytest.raises(UpstreamDecodeError):
        decode_soap_json(xml, "GetHat_json")


def test_call_sends_soap_headers(http_settings):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["action"] = request.headers["soapaction"]
        seen["type"] = request.headers["content-type"]
        return httpx.Response(200, text=soap_response("GetHat_json", [{"SHATKODU": "1"}]))

    with make_client(http_settings, transport=httpx.MockTransport(handler)) as client:
        data = call_soap_json(http_settings, client, "https://soap.test/x.asmx", "GetHat_json", {"HatKodu": ""})

    assert data == [{"SHATKODU": "1"}]
    assert seen["action"] == '"http://tempuri.org/GetHat_json"'
    assert seen["type"].startswith("text/xml")
