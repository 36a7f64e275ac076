"""HTTP VCR: record and replay HTTP traffic inside a proxy pipeline."""

__version__ = "0.1.0"

from http_vcr.core.format import Exchange, RecordedRequest, RecordedResponse, RecordsetFile
from http_vcr.core.matcher import Matcher
from http_vcr.core.store import UnknownRecordsetError
from http_vcr.engine import ReplayEngine

__all__ = [
    "Exchange",
    "RecordedRequest",
    "RecordedResponse",
    "RecordsetFile",
    "Matcher",
    "UnknownRecordsetError",
    "ReplayEngine",
]
