"""Utility helpers for gfsretain."""

from .logging_config import LoggingManager, configure_logging, get_logger, log_audit_event

__all__ = ['LoggingManager', 'configure_logging', 'get_logger', 'log_audit_event']
