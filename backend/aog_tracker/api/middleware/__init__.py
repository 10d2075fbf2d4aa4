"""
API Middleware

- correlation: X-Correlation-Id propagation into the logging context
- error_handlers: JSON rendering of domain, validation and unexpected errors
"""

from .correlation import CorrelationIdMiddleware
from .error_handlers import register_error_handlers

__all__ = ["CorrelationIdMiddleware", "register_error_handlers"]
