"""Core provider abstractions."""
from market_events_agg.providers.core.error_mapper import ProviderErrorMapper
from market_events_agg.providers.core.exceptions import (AppError,
                                                         BatchTransformError,
                                                         CacheError, ErrorCode,
                                                         InvalidRequestError,
                                                         PolymarketError,
                                                         TransformationError,
                                                         error_response)
from market_events_agg.providers.core.protocols import (CacheBackend,
                                                        UpstreamClient)

__all__ = [
    "AppError",
    "BatchTransformError",
    "CacheBackend",
    "CacheError",
    "ErrorCode",
    "InvalidRequestError",
    "PolymarketError",
    "ProviderErrorMapper",
    "TransformationError",
    "UpstreamClient",
    "error_response",
]
