"""
Secure logging utilities for search traffic

Location queries are free text: people paste phone numbers, e-mail
addresses and street addresses into the search box. Everything that reaches
the logs from a request goes through SecureLogger first.
"""
import hashlib
import json
import logging
import re
import time
import uuid
from typing import Any, Dict, List, Optional, Set, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from fastapi import Request

logger = logging.getLogger(__name__)


class SecureLogger:
    """
    Request/response log formatter with redaction

    - Drops credential-bearing headers and parameters
    - Masks PII patterns inside free-text search input
    - Generates request IDs for tracing
    """

    SENSITIVE_HEADERS: Set[str] = {
        'authorization',
        'cookie',
        'set-cookie',
        'x-api-key',
        'x-forwarded-for',
        'x-real-ip',
        'proxy-authorization',
    }

    SENSITIVE_PARAMS: Set[str] = {
        'password',
        'secret',
        'token',
        'api_key',
        'apikey',
        'access_token',
        'session',
    }

    # Search parameters holding user-typed text
    FREE_TEXT_PARAMS: Set[str] = {'q', 'location', 'url', 'target'}

    PII_PATTERNS: List[Tuple[re.Pattern, str]] = [
        (re.compile(r'\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b'), '[EMAIL_REDACTED]'),
        # SA ID numbers (13 digits)
        (re.compile(r'\b\d{13}\b'), '[ID_REDACTED]'),
        # Phone numbers: +27 82 123 4567, 082-123-4567, 0821234567
        (re.compile(r'(?<!\w)(\+27|0)[\s-]?\d{2}[\s-]?\d{3}[\s-]?\d{4}\b'), '[PHONE_REDACTED]'),
        (re.compile(r'eyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+'), '[JWT_REDACTED]'),
    ]

    MAX_FREE_TEXT_LENGTH = 120

    @classmethod
    def generate_request_id(cls) -> str:
        """
        Generate unique request ID for distributed tracing
        Format: req_[timestamp]_[random]
        """
        timestamp = int(time.time() * 1000)
        random_part = uuid.uuid4().hex[:8]
        return f"req_{timestamp}_{random_part}"

    @classmethod
    def redact_pii(cls, text: str, max_length: int = 1000) -> str:
        if not text:
            return text

        if len(text) > max_length:
            text = text[:max_length] + '...[TRUNCATED]'

        for pattern, replacement in cls.PII_PATTERNS:
            text = pattern.sub(replacement, text)

        return text

    @classmethod
    def sanitize_params(cls, params: Dict[str, Any]) -> Dict[str, Any]:
        if not params:
            return {}

        sanitized = {}
        for key, value in params.items():
            key_lower = key.lower().strip()

            if any(sensitive in key_lower for sensitive in cls.SENSITIVE_PARAMS):
                sanitized[key] = '[REDACTED]'
            elif isinstance(value, str):
                limit = cls.MAX_FREE_TEXT_LENGTH if key_lower in cls.FREE_TEXT_PARAMS else 1000
                sanitized[key] = cls.redact_pii(value, max_length=limit)
            else:
                sanitized[key] = value

        return sanitized

    @classmethod
    def sanitize_headers(cls, headers: Dict[str, Any]) -> Dict[str, Any]:
        if not headers:
            return {}
        return {
            key: '[REDACTED]' if key.lower().strip() in cls.SENSITIVE_HEADERS else cls.redact_pii(str(value))
            for key, value in headers.items()
        }

    @classmethod
    def format_request_log(
        cls,
        request: 'Request',
        request_id: str,
        include_headers: bool = False
    ) -> Dict[str, Any]:
        log_data = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "query_params": cls.sanitize_params(dict(request.query_params)),
        }

        if request.client:
            # Hash IP for privacy while keeping requests correlatable
            log_data["client_hash"] = hashlib.sha256(request.client.host.encode()).hexdigest()[:8]

        if include_headers:
            log_data["headers"] = cls.sanitize_headers(dict(request.headers))

        log_data["user_agent"] = request.headers.get("user-agent", "unknown")[:200]
        return log_data

    @classmethod
    def format_response_log(
        cls,
        request_id: str,
        status_code: int,
        duration_ms: float,
    ) -> Dict[str, Any]:
        log_data = {
            "request_id": request_id,
            "status_code": status_code,
            "duration_ms": round(duration_ms, 2),
        }

        if 200 <= status_code < 300:
            log_data["status_category"] = "success"
        elif 300 <= status_code < 400:
            log_data["status_category"] = "redirect"
        elif 400 <= status_code < 500:
            log_data["status_category"] = "client_error"
        elif 500 <= status_code < 600:
            log_data["status_category"] = "server_error"
        else:
            log_data["status_category"] = "unknown"

        return log_data

    @classmethod
    def format_error_log(cls, request_id: str, error: Exception) -> Dict[str, Any]:
        return {
            "request_id": request_id,
            "error_type": type(error).__name__,
            "error_message": cls.redact_pii(str(error)),
        }


def log_secure(level: str, message: str, data: Dict[str, Any], request_id: Optional[str] = None):
    """
    Helper for consistent structured logging

    Args:
        level: Log level (info, warning, error)
        message: Log message
        data: Structured data to log
        request_id: Optional request ID for correlation
    """
    if request_id:
        data["request_id"] = request_id

    log_json = json.dumps({"message": message, "data": data}, default=str)

    if level == "info":
        logger.info(log_json)
    elif level == "warning":
        logger.warning(log_json)
    elif level == "error":
        logger.error(log_json)
    else:
        logger.debug(log_json)
