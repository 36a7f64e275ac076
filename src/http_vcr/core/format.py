"""Recordset format: Pydantic models for recorded HTTP exchanges.

A recordset file captures an ordered list of exchanges, each holding:
- The request as seen by the pipeline (method, URL, headers, bodies)
- The response returned by the real upstream
- Capture timestamps (ms since epoch) bounding the upstream call
"""

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)


Headers = List[Tuple[str, str]]


def normalize_headers(v: Any) -> Any:
    """Accept mappings (including multidicts) as well as lists of pairs."""
    if v is None:
        return []
    if isinstance(v, Mapping):
        return [(str(k), str(val)) for k, val in v.items()]
    return v


class _RecordModel(BaseModel):
    """Base for immutable records; bytes travel as base64 in JSON."""

    model_config = ConfigDict(
        frozen=True,
        ser_json_bytes="base64",
        val_json_bytes="base64",
    )


class ParsedURL(_RecordModel):
    """Components of a request target, split without normalisation."""

    path: str = ""
    query_string: str = ""
    query: Dict[str, List[str]] = Field(default_factory=dict)
    fragment: str = ""

    @classmethod
    def from_url(cls, url: str) -> "ParsedURL":
        """Split an absolute or origin-form URL into its components.

        Args:
            url: Request target as received (e.g. ``/a?b=1``)

        Returns:
            ParsedURL instance
        """
        parts = urlsplit(url)
        return cls(
            path=parts.path,
            query_string=parts.query,
            query=parse_qs(parts.query, keep_blank_values=True),
            fragment=parts.fragment,
        )


class RecordedRequest(_RecordModel):
    """The request half of an exchange."""

    method: str = Field(description="HTTP method, compared case-sensitively")
    url: str = Field(description="Full request target including query string")
    url_parse: ParsedURL = Field(
        default=None, validate_default=True, description="Derived from url when omitted"
    )
    headers: Headers = Field(default_factory=list, description="Ordered header pairs")
    raw_body: Optional[bytes] = Field(
        None, description="Raw body bytes; None means no body was captured"
    )
    body: Optional[Any] = Field(None, description="Decoded body, if the host decoded one")

    @field_validator("headers", mode="before")
    @classmethod
    def validate_headers(cls, v: Any) -> Any:
        return normalize_headers(v)

    @field_validator("url_parse", mode="before")
    @classmethod
    def fill_url_parse(cls, v: Any, info: ValidationInfo) -> Any:
        """Derive url_parse from url when it was not supplied."""
        if v is None and "url" in info.data:
            return ParsedURL.from_url(info.data["url"])
        return v


class RecordedResponse(_RecordModel):
    """The upstream response half of an exchange."""

    status_code: int
    status_message: str = ""
    headers: Headers = Field(default_factory=list, description="Ordered header pairs")
    body: bytes = b""

    @field_validator("headers", mode="before")
    @classmethod
    def validate_headers(cls, v: Any) -> Any:
        return normalize_headers(v)


class Exchange(_RecordModel):
    """One recorded request/response pair with its capture timestamps."""

    request: RecordedRequest
    response: RecordedResponse
    start: float = Field(description="When the upstream call was issued (ms since epoch)")
    end: float = Field(description="When the upstream response arrived (ms since epoch)")

    @model_validator(mode="after")
    def validate_timestamps(self) -> "Exchange":
        if self.end < self.start:
            raise ValueError(
                f"Exchange end ({self.end}) must not precede start ({self.start})"
            )
        return self

    @property
    def duration_ms(self) -> float:
        """Original upstream latency in milliseconds."""
        return self.end - self.start


class RecordsetFile(BaseModel):
    """A named recordset as stored on disk by tooling."""

    format_version: str = Field(default="1.0.0", description="Recordset format version")
    name: str = Field(description="Recordset name used on every engine call")
    recorded_at: datetime = Field(
        default_factory=datetime.now, description="When the file was written"
    )
    exchanges: List[Exchange] = Field(default_factory=list)

    def save(self, path: str) -> None:
        """Save the recordset to a JSON file.

        Args:
            path: File path to save to

        Raises:
            IOError: If the file cannot be written
        """
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(self.to_json())
        except (IOError, OSError) as e:
            raise IOError(f"Failed to save recordset to {path}: {e}") from e

    @classmethod
    def load(cls, path: str) -> "RecordsetFile":
        """Load a recordset from a JSON file.

        Args:
            path: File path to load from

        Returns:
            RecordsetFile instance

        Raises:
            IOError: If the file cannot be read
            ValueError: If the file contains invalid data
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = f.read()
        except (IOError, OSError) as e:
            raise IOError(f"Failed to read recordset from {path}: {e}") from e
        try:
            return cls.from_json(data)
        except ValueError as e:
            raise ValueError(f"Invalid recordset format in {path}: {e}") from e

    def to_json(self) -> str:
        """Convert the recordset to a JSON string."""
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, json_str: str) -> "RecordsetFile":
        """Create a recordset from a JSON string.

        Raises:
            ValueError: If the JSON is invalid or doesn't match the schema
        """
        return cls.model_validate_json(json_str)

    @property
    def exchange_count(self) -> int:
        return len(self.exchanges)
