"""Tests for the PIN code lookup."""
import httpx
import pytest

from storefront.checkout import PincodeLookup, PincodeInfo, PincodeLookupError

from conftest import json_response


def _lookup(handler) -> PincodeLookup:
    return PincodeLookup(transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_success():
    def handler(request):
        assert request.url.path == "/pincode/600058"
        return json_response(body=[{
            "Status": "Success",
            "PostOffice": [{"Name": "Ambattur", "District": "Chennai", "State": "Tamil Nadu"}],
        }])

    assert await _lookup(handler).lookup("600058") == PincodeInfo(city="Chennai", state="Tamil Nadu")


@pytest.mark.asyncio
async def test_unknown_code_is_none():
    lookup = _lookup(lambda request: json_response(body=[{"Status": "Error", "PostOffice": None}]))
    assert await lookup.lookup("000000") is None


@pytest.mark.asyncio
async def test_transport_failure_raises():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    with pytest.raises(PincodeLookupError):
        await _lookup(handler).lookup("600058")


@pytest.mark.asyncio
async def test_malformed_body_raises():
    with pytest.raises(PincodeLookupError):
        await _lookup(lambda request: json_response(body={"unexpected": True})).lookup("600058")
