"""Utility functions for the backend."""
from .geographies import (
    PROVINCE_CODES,
    SOUTH_AFRICAN_PROVINCES,
    canonicalize_province,
    known_province_aliases,
    province_code,
)
from .logging_security import SecureLogger, log_secure

__all__ = [
    # Geography helpers
    'PROVINCE_CODES',
    'SOUTH_AFRICAN_PROVINCES',
    'canonicalize_province',
    'known_province_aliases',
    'province_code',
    # Logging utilities
    'SecureLogger',
    'log_secure',
]
