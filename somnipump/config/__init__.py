# somnipump/config/__init__.py
"""Configuration package for somnipump."""

from .settings import settings, Settings

__all__ = ["settings", "Settings"]
