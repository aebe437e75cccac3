"""Fetch outcome types: a success/failure sum for one fetch cycle."""

from dataclasses import dataclass

from blanket.models.temperature import TemperatureRecord


class TemperatureFetchError(Exception):
    """Transport, HTTP status, or decoding failure while fetching records."""

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        status_code: int | None = None,
    ):
        super().__init__(message)
        self.cause = cause
        self.status_code = status_code


@dataclass(frozen=True)
class FetchSuccess:
    records: tuple[TemperatureRecord, ...]

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class FetchFailure:
    error: TemperatureFetchError

    @property
    def ok(self) -> bool:
        return False


FetchResult = FetchSuccess | FetchFailure
