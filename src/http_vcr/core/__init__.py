"""Core data models and matching/timing logic for HTTP VCR."""

from http_vcr.core.format import Exchange, ParsedURL, RecordedRequest, RecordedResponse, RecordsetFile
from http_vcr.core.matcher import Matcher, RecordsetMatcher
from http_vcr.core.session import SessionManager
from http_vcr.core.store import RecordsetStore, UnknownRecordsetError
from http_vcr.core.timing import TimeFrame, TimingSimulator, compute_delay

__all__ = [
    "Exchange",
    "ParsedURL",
    "RecordedRequest",
    "RecordedResponse",
    "RecordsetFile",
    "Matcher",
    "RecordsetMatcher",
    "SessionManager",
    "RecordsetStore",
    "UnknownRecordsetError",
    "TimeFrame",
    "TimingSimulator",
    "compute_delay",
]
