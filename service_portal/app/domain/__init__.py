"""
Domain layer for the Portal Gateway Service.

Pure normalization, listing and merge logic plus the gateway that drives the
ERP adapters. Nothing here depends on the HTTP transport except the session
middleware.
"""

from .gateway import ResourceGateway
from .merger import merge
from .normalizer import normalize, normalize_batch, parse_collection

__all__ = [
    "ResourceGateway",
    "merge",
    "normalize",
    "normalize_batch",
    "parse_collection",
]
