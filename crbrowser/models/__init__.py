"""Pydantic models for crbrowser."""

from .launch import LaunchOptions

__all__ = ["LaunchOptions"]
