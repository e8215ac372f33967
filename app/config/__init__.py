# Configuration package
"""
Configuration package for the payment gateway API.
Exports settings from settings.py for easy import
"""
from .settings import settings, Settings

__all__ = ["settings", "Settings"]
