"""Utilities shared across depth_integration."""

from .logging import get_logger

__all__ = ["get_logger"]
