"""Postal code → city/state lookup against the public India Post API."""
import logging
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

PINCODE_API_URL = "https://api.postalpincode.in/pincode/{pin_code}"


class PincodeLookupError(Exception):
    """The lookup service could not be reached or answered nonsense."""


@dataclass
class PincodeInfo:
    city: str
    state: str


class PincodeLookup:
    def __init__(self, timeout: float = 10.0, transport: httpx.AsyncBaseTransport | None = None):
        self._timeout = timeout
        self._transport = transport

    async def lookup(self, pin_code: str) -> PincodeInfo | None:
        """None when the service knows no post office for this code."""
        url = PINCODE_API_URL.format(pin_code=pin_code)
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as http:
                response = await http.get(url)
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise PincodeLookupError(f"Pincode lookup failed for {pin_code}: {e}") from e

        try:
            entry = data[0]
            if entry.get("Status") != "Success":
                return None
            office = entry["PostOffice"][0]
            return PincodeInfo(city=office["District"], state=office["State"])
        except (IndexError, KeyError, TypeError, AttributeError) as e:
            raise PincodeLookupError(f"Unexpected pincode response for {pin_code}") from e
