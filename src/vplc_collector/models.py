"""
vPLC data models

Pydantic models for the device access list and the documents returned by
the vPLC cyclic-backup API.

Author: uldyssian-sh
License: MIT
"""

import json
from typing import Any, Dict, List, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import PayloadParseError


class DeviceRecord(BaseModel):
    """Connection record for one vPLC instance"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(min_length=1)
    login_url: str = Field(alias="loginUrl", min_length=1)
    api_url: str = Field(alias="apiUrl", min_length=1)
    username: str = Field(alias="user")
    password: str = Field(repr=False)

    @field_validator("api_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class AccessList(BaseModel):
    """Top level access file document"""

    instances: List[DeviceRecord] = Field(alias="vplcs")

    @field_validator("instances")
    @classmethod
    def _unique_names(cls, value: List[DeviceRecord]) -> List[DeviceRecord]:
        if not value:
            raise ValueError("access list contains no vplc instances")
        seen = set()
        for record in value:
            if record.name in seen:
                raise ValueError(f"duplicate vplc name: {record.name}")
            seen.add(record.name)
        return value


class HistogramReport(BaseModel):
    """Cyclic-backup histogram document"""

    model_config = ConfigDict(populate_by_name=True)

    timestamp_ns: int = Field(default=0, alias="timestampNs")
    cycle_delay: Dict[str, float] = Field(default_factory=dict, alias="cycleDelayHistogram")
    write_duration: Dict[str, float] = Field(default_factory=dict, alias="writeDurationHistogram")

    @field_validator("cycle_delay", "write_duration", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value


def decode_json(body: Union[bytes, str], what: str) -> Any:
    """Decode a JSON response body, raising PayloadParseError on failure."""
    try:
        return json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise PayloadParseError(f"Invalid JSON in {what}: {e}") from e


def parse_histogram_report(body: Union[bytes, str]) -> HistogramReport:
    """Parse the body of GET /retain/cyclic-backup/histogram."""
    data = decode_json(body, "histogram response")
    if not isinstance(data, dict):
        raise PayloadParseError("Histogram response is not a JSON object")
    try:
        return HistogramReport.model_validate(data)
    except ValidationError as e:
        raise PayloadParseError(f"Unexpected histogram response: {e}") from e


def parse_metrics_document(body: Union[bytes, str]) -> Dict[str, Any]:
    """Parse the body of GET /retain/cyclic-backup."""
    data = decode_json(body, "cyclic-backup response")
    if not isinstance(data, dict):
        raise PayloadParseError("Cyclic-backup response is not a JSON object")
    return data
