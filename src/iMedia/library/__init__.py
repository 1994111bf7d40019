"""Typed access to a media library."""

from .manager import NEWEST_FIRST, MediaLibrary

__all__ = ["MediaLibrary", "NEWEST_FIRST"]
