"""Configuration module."""

from .settings import DEFAULT_PRODUCT_TIERS, Settings, get_settings

__all__ = ["DEFAULT_PRODUCT_TIERS", "Settings", "get_settings"]
