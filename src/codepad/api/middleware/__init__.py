"""Codepad API middleware package."""

from codepad.api.middleware.request_id import RequestIdMiddleware

__all__ = ["RequestIdMiddleware"]
