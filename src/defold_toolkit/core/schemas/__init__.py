"""
Schemas Package

JSON schema definitions and validation utilities.
"""

from .validator import (
    validate_document,
    ValidationError,
    DOCUMENT_SCHEMA_VERSION,
)

__all__ = [
    "validate_document",
    "ValidationError",
    "DOCUMENT_SCHEMA_VERSION",
]
