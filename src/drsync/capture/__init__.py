"""Capture module for photo intake."""

from drsync.capture.photo import PhotoError, compress_to_jpeg, save_photo

__all__ = ["PhotoError", "compress_to_jpeg", "save_photo"]
