"""Utility functions."""

from .validation import validate_image_format, validate_output_path, validate_file_path, validate_dialect

__all__ = ["validate_image_format", "validate_output_path", "validate_file_path", "validate_dialect"]
