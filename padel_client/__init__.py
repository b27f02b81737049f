from .cache import ResponseCache, ResponseCacheConfig, cache_key
from .client import PadelApiClient
from .config import ClientSettings, load_settings
from .errors import (
    ApiFailure,
    ApiStatusError,
    AuthError,
    ConfigurationError,
    ErrorKind,
    MalformedResponseError,
    PadelApiError,
    RateLimitError,
    TransportError,
)
from .models import Attribute, AuthHeaders, ProbeResult, RacketMetrics, RacketRecord, SimilarRackets
from .signer import HmacSigner

__all__ = [
    "ApiFailure",
    "ApiStatusError",
    "Attribute",
    "AuthError",
    "AuthHeaders",
    "ClientSettings",
    "ConfigurationError",
    "ErrorKind",
    "HmacSigner",
    "MalformedResponseError",
    "PadelApiClient",
    "PadelApiError",
    "ProbeResult",
    "RacketMetrics",
    "RacketRecord",
    "RateLimitError",
    "ResponseCache",
    "ResponseCacheConfig",
    "SimilarRackets",
    "TransportError",
    "cache_key",
    "load_settings",
]
