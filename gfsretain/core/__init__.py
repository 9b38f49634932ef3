"""Core configuration for gfsretain."""

from .config import RetentionSettings, load_settings, apply_overrides

__all__ = ['RetentionSettings', 'load_settings', 'apply_overrides']
