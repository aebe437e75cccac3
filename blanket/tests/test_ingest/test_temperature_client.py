"""Tests for the temperature table client with mocked httpx."""

import asyncio

import httpx
import pytest
import respx

from blanket.config.schema import ApiConfig
from blanket.ingest.temperature_client import TemperatureClient, decode_records
from blanket.models.fetch import FetchFailure, FetchSuccess, TemperatureFetchError

RECORDS_URL = "https://test-blanket.example.com/api/v2/tables/tbl123/records"


@pytest.fixture
def client(api_config: ApiConfig) -> TemperatureClient:
    return TemperatureClient(api_config)


class TestFetchTemperatures:
    @respx.mock
    def test_success(self, client: TemperatureClient, payload: dict):
        respx.get(RECORDS_URL).mock(return_value=httpx.Response(200, json=payload))

        result = asyncio.run(client.fetch_temperatures("75001"))
        assert isinstance(result, FetchSuccess)
        assert result.ok
        assert [r.id for r in result.records] == [1, 2, 3]
        assert result.records[0].datetime == "2024-01-01"
        assert result.records[2].temp == 71.2

    @respx.mock
    def test_static_query_and_headers(self, client: TemperatureClient, payload: dict):
        route = respx.get(RECORDS_URL).mock(return_value=httpx.Response(200, json=payload))

        asyncio.run(client.fetch_temperatures(""))
        request = route.calls[0].request
        params = request.url.params
        assert params["viewId"] == "view456"
        assert params["limit"] == "365"
        assert params["shuffle"] == "0"
        assert params["offset"] == "0"
        assert "where" not in params
        assert request.headers["accept"] == "application/json"
        assert request.headers["xc-token"] == "test-token"

    @respx.mock
    def test_postal_code_filter(self, client: TemperatureClient, payload: dict):
        route = respx.get(RECORDS_URL, params={"where": "(zip,eq,75001)"}).mock(
            return_value=httpx.Response(200, json=payload)
        )

        result = asyncio.run(client.fetch_temperatures(" 75001 "))
        assert result.ok
        assert route.called

    @respx.mock
    def test_postal_code_ignored_when_filter_disabled(self, api_config: ApiConfig, payload: dict):
        config = api_config.model_copy(update={"filter_by_postal_code": False})
        route = respx.get(RECORDS_URL).mock(return_value=httpx.Response(200, json=payload))

        asyncio.run(TemperatureClient(config).fetch_temperatures("75001"))
        assert "where" not in route.calls[0].request.url.params

    @respx.mock
    def test_http_error_is_failure(self, client: TemperatureClient):
        respx.get(RECORDS_URL).mock(return_value=httpx.Response(503))

        result = asyncio.run(client.fetch_temperatures("75001"))
        assert isinstance(result, FetchFailure)
        assert result.error.status_code == 503
        assert isinstance(result.error.cause, httpx.HTTPStatusError)

    @respx.mock
    def test_transport_error_is_failure(self, client: TemperatureClient):
        respx.get(RECORDS_URL).mock(side_effect=httpx.ConnectError("refused"))

        result = asyncio.run(client.fetch_temperatures("75001"))
        assert isinstance(result, FetchFailure)
        assert result.error.status_code is None
        assert isinstance(result.error.cause, httpx.ConnectError)

    @respx.mock
    def test_invalid_json_is_failure(self, client: TemperatureClient):
        respx.get(RECORDS_URL).mock(return_value=httpx.Response(200, text="<html>oops</html>"))

        result = asyncio.run(client.fetch_temperatures("75001"))
        assert isinstance(result, FetchFailure)
        assert "JSON" in str(result.error)

    @respx.mock
    def test_missing_list_is_failure(self, client: TemperatureClient):
        respx.get(RECORDS_URL).mock(return_value=httpx.Response(200, json={"msg": "bad"}))

        result = asyncio.run(client.fetch_temperatures("75001"))
        assert isinstance(result, FetchFailure)

    @respx.mock
    def test_single_request_no_retry(self, client: TemperatureClient):
        route = respx.get(RECORDS_URL).mock(return_value=httpx.Response(500))

        asyncio.run(client.fetch_temperatures("75001"))
        assert route.call_count == 1


class TestToken:
    def test_token_from_env(self, monkeypatch):
        monkeypatch.setenv("BLANKET_API_TOKEN", "env-token")
        assert TemperatureClient(ApiConfig()).token == "env-token"

    def test_config_token_wins(self, monkeypatch, api_config: ApiConfig):
        monkeypatch.setenv("BLANKET_API_TOKEN", "env-token")
        assert TemperatureClient(api_config).token == "test-token"

    def test_url(self, client: TemperatureClient):
        assert client.url == RECORDS_URL


class TestDecodeRecords:
    def test_keeps_order(self, payload: dict):
        payload["list"].reverse()
        records = decode_records(payload)
        assert [r.id for r in records] == [3, 2, 1]

    def test_empty_list(self):
        assert decode_records({"list": []}) == ()

    def test_integer_temp_becomes_float(self):
        records = decode_records({"list": [{"Id": 9, "zip": 1, "datetime": "2024-05-01", "temp": 60}]})
        assert isinstance(records[0].temp, float)

    def test_missing_field(self):
        with pytest.raises(TemperatureFetchError, match="index 0"):
            decode_records({"list": [{"Id": 1, "zip": 1, "datetime": "2024-01-01"}]})

    def test_bad_temp(self):
        with pytest.raises(TemperatureFetchError):
            decode_records({"list": [{"Id": 1, "zip": 1, "datetime": "2024-01-01", "temp": "warm"}]})

    def _decode_with(self, **fields):
        item = {"Id": 1, "zip": 75001, "datetime": "2024-01-01", "temp": 52.0, **fields}
        return decode_records({"list": [item]})

    def test_string_id_rejected(self):
        with pytest.raises(TemperatureFetchError, match="Id"):
            self._decode_with(Id="12")

    def test_string_zip_rejected(self):
        with pytest.raises(TemperatureFetchError, match="zip"):
            self._decode_with(zip="75001")

    def test_fractional_zip_not_truncated(self):
        with pytest.raises(TemperatureFetchError, match="zip"):
            self._decode_with(zip=750.7)

    def test_numeric_string_temp_rejected(self):
        with pytest.raises(TemperatureFetchError, match="temp"):
            self._decode_with(temp="52.0")

    def test_bool_temp_rejected(self):
        with pytest.raises(TemperatureFetchError, match="temp"):
            self._decode_with(temp=True)

    def test_non_string_date_rejected(self):
        with pytest.raises(TemperatureFetchError, match="datetime"):
            self._decode_with(datetime=20240101)

    @respx.mock
    def test_string_id_is_a_fetch_failure(self, client: TemperatureClient):
        body = {"list": [{"Id": "1", "zip": 75001, "datetime": "2024-01-01", "temp": 50}]}
        respx.get(RECORDS_URL).mock(return_value=httpx.Response(200, json=body))

        result = asyncio.run(client.fetch_temperatures("75001"))
        assert isinstance(result, FetchFailure)
        assert "Malformed record" in str(result.error)

    def test_not_an_envelope(self):
        with pytest.raises(TemperatureFetchError):
            decode_records([{"Id": 1}])
