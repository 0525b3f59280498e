"""Endpoint/payload adapters per API version."""

from .version import ApiVersionAdapter, V2Adapter, V3Adapter, get_adapter

__all__ = [
    "ApiVersionAdapter",
    "V2Adapter",
    "V3Adapter",
    "get_adapter",
]
