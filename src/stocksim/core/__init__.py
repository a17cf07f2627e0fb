"""Core utilities and shared functionality."""

from stocksim.core.timezone import (
    now_eastern,
    to_eastern,
    parse_datetime_eastern,
    EASTERN_TZ,
)
from stocksim.core.exceptions import (
    AppError,
    ValidationError,
    InsufficientCashError,
    InsufficientSharesError,
    PositionNotFoundError,
    NotAuthenticatedError,
    NotFoundError,
    SymbolNotFoundError,
    UpstreamError,
    MissingCredentialsError,
    RateLimitError,
    MalformedPayloadError,
    TransportError,
    PersistenceError,
    ParseError,
)
from stocksim.core.single_flight import SingleFlight

__all__ = [
    "now_eastern",
    "to_eastern",
    "parse_datetime_eastern",
    "EASTERN_TZ",
    "AppError",
    "ValidationError",
    "InsufficientCashError",
    "InsufficientSharesError",
    "PositionNotFoundError",
    "NotAuthenticatedError",
    "NotFoundError",
    "SymbolNotFoundError",
    "UpstreamError",
    "MissingCredentialsError",
    "RateLimitError",
    "MalformedPayloadError",
    "TransportError",
    "PersistenceError",
    "ParseError",
    "SingleFlight",
]
