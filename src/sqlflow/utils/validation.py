"""Input validation utilities."""

import os
from typing import Optional

VALID_IMAGE_FORMATS = ("jpg", "png", "svg")


def validate_image_format(image_format: Optional[str]) -> Optional[str]:
    """
    Validate an image format for Graphviz rendering.

    Args:
        image_format: Requested format, or None for no image

    Returns:
        Error message if invalid, None if valid
    """
    if image_format is None:
        return None

    if image_format not in VALID_IMAGE_FORMATS:
        return f"Invalid image format: {image_format}"

    return None


def validate_output_path(path: str, overwrite: bool = False) -> Optional[str]:
    """
    Validate an output directory path.

    Args:
        path: Directory the flow documents are written to
        overwrite: Whether an existing destination may be replaced

    Returns:
        Error message if invalid, None if valid
    """
    error = validate_file_path(path)
    if error:
        return error

    if os.path.exists(path) and not overwrite:
        return f"path {path} already exists"

    return None


def validate_file_path(file_path: str) -> Optional[str]:
    """
    Validate file path.

    Args:
        file_path: File path to validate

    Returns:
        Error message if invalid, None if valid
    """
    if not file_path:
        return "File path cannot be empty"

    if not isinstance(file_path, str):
        return "File path must be a string"

    if len(file_path.strip()) == 0:
        return "File path cannot be empty or whitespace only"

    invalid_chars = ['<', '>', '|', '\0']
    if any(char in file_path for char in invalid_chars):
        return f"File path contains invalid characters: {invalid_chars}"

    return None


def validate_dialect(dialect: str) -> Optional[str]:
    """
    Validate the SQL dialect used to read column expressions.

    Args:
        dialect: SQL dialect string

    Returns:
        Error message if invalid, None if valid
    """
    if not dialect:
        return "Dialect cannot be empty"

    if not isinstance(dialect, str):
        return "Dialect must be a string"

    supported_dialects = {
        "spark", "spark2", "databricks", "hive", "trino", "presto", "duckdb",
        "postgres", "mysql", "bigquery", "snowflake"
    }

    if dialect.lower() not in supported_dialects:
        return f"Unsupported dialect '{dialect}'. Supported: {', '.join(sorted(supported_dialects))}"

    return None
