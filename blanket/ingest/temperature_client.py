"""Temperature table API client: one GET per fetch, no retries."""

import logging
import os

import httpx

from blanket.config.schema import ApiConfig
from blanket.models.fetch import (
    FetchFailure,
    FetchResult,
    FetchSuccess,
    TemperatureFetchError,
)
from blanket.models.temperature import TemperatureRecord

logger = logging.getLogger(__name__)

TOKEN_ENV_VAR = "BLANKET_API_TOKEN"


class TemperatureClient:
    def __init__(
        self,
        config: ApiConfig | None = None,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or ApiConfig()
        self.token = token or self.config.token or os.environ.get(TOKEN_ENV_VAR, "")
        self._transport = transport

    @property
    def url(self) -> str:
        base = self.config.base_url.rstrip("/")
        return f"{base}/api/v2/tables/{self.config.table_id}/records"

    def build_params(self, postal_code: str) -> dict[str, str | int]:
        params: dict[str, str | int] = {
            "viewId": self.config.view_id,
            "limit": self.config.limit,
            "shuffle": self.config.shuffle,
            "offset": self.config.offset,
        }
        postal_code = postal_code.strip()
        if self.config.filter_by_postal_code and postal_code:
            params["where"] = f"(zip,eq,{postal_code})"
        return params

    def _headers(self) -> dict[str, str]:
        return {"accept": "application/json", "xc-token": self.token}

    async def fetch_temperatures(self, postal_code: str = "") -> FetchResult:
        """Fetch daily records for a postal code.

        Never raises for transport, status, or decoding problems: every
        failure comes back as a FetchFailure carrying the cause.
        """
        params = self.build_params(postal_code)
        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout_seconds, transport=self._transport
            ) as client:
                resp = await client.get(self.url, params=params, headers=self._headers())
            resp.raise_for_status()
            records = decode_records(resp.json())
        except httpx.HTTPStatusError as e:
            logger.error("Temperature API returned %d for %s", e.response.status_code, self.url)
            return FetchFailure(
                TemperatureFetchError(
                    f"Temperature API returned HTTP {e.response.status_code}",
                    cause=e,
                    status_code=e.response.status_code,
                )
            )
        except httpx.RequestError as e:
            logger.error("Temperature API request failed: %s", e)
            return FetchFailure(
                TemperatureFetchError(f"Could not reach temperature service: {e}", cause=e)
            )
        except TemperatureFetchError as e:
            logger.error("Temperature API response could not be decoded: %s", e)
            return FetchFailure(e)
        except ValueError as e:
            logger.error("Temperature API returned invalid JSON: %s", e)
            return FetchFailure(TemperatureFetchError("Response body is not valid JSON", cause=e))

        logger.info("Fetched %d temperature records (zip=%s)", len(records), postal_code or "-")
        return FetchSuccess(records)


def decode_records(raw: object) -> tuple[TemperatureRecord, ...]:
    """Decode the `{"list": [...]}` envelope into records, keeping server order."""
    if not isinstance(raw, dict) or not isinstance(raw.get("list"), list):
        raise TemperatureFetchError("Response is missing the 'list' array")

    records = []
    for i, item in enumerate(raw["list"]):
        try:
            records.append(
                TemperatureRecord(
                    id=_field(item, "Id", int),
                    zip=_field(item, "zip", int),
                    datetime=_field(item, "datetime", str),
                    temp=float(_field(item, "temp", (int, float))),
                )
            )
        except (KeyError, TypeError) as e:
            raise TemperatureFetchError(f"Malformed record at index {i}: {e!r}", cause=e) from e
    return tuple(records)


def _field(item: object, key: str, types: type | tuple[type, ...]):
    """Value of `key` if it has the JSON type expected; no coercion."""
    value = item[key]  # type: ignore[index]
    if isinstance(value, bool) or not isinstance(value, types):
        raise TypeError(f"{key!r} has unexpected type {type(value).__name__}")
    return value
