"""Common helpers shared across models."""

import uuid
from datetime import UTC, datetime


def utc_now() -> datetime:
    return datetime.now(UTC)


def utc_now_iso() -> str:
    return utc_now().isoformat()


def new_range_id() -> str:
    return str(uuid.uuid4())
