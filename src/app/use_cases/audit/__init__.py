"""Audit use cases."""

from .get_security_events_use_case import GetSecurityEventsUseCase

__all__ = ["GetSecurityEventsUseCase"]
