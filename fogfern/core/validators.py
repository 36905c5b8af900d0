#!/usr/bin/env python3
"""
validators.py
--------------------
Data validation and normalization utilities.

Used by the dataset loader (record normalization) and the repositories
(fail-fast input checks that run before any storage access).
"""
from __future__ import annotations

import re
import unicodedata
from typing import Any, Dict, List, Optional

from .exceptions import ValidationError

# Deliberately simple: something@domain.tld with no whitespace
EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")


class DataValidator:
    """Centralized data validation for store operations."""

    @staticmethod
    def missing_fields(data: Dict[str, Any], required_fields: List[str]) -> List[str]:
        """Return the required fields that are missing or blank, in order."""
        missing = []
        for field in required_fields:
            value = data.get(field)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(field)
        return missing

    @staticmethod
    def normalize_string(value: Any) -> Optional[str]:
        """
        Strip and collapse internal whitespace.

        Returns:
            Normalized string, or None for empty/None input
        """
        if value is None:
            return None
        text = " ".join(str(value).split())
        return text or None

    @staticmethod
    def normalize_machine_name(value: str) -> str:
        """
        Build a lookup key: lowercase ASCII, no punctuation, underscores.

        Examples:
            >>> DataValidator.normalize_machine_name("San Francisco")
            'san_francisco'
            >>> DataValidator.normalize_machine_name("St. Paul")
            'st_paul'
        """
        ascii_text = (
            unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
        )
        words = re.findall(r"[a-z0-9]+", ascii_text.lower())
        return "_".join(words)

    @staticmethod
    def validate_email(email: Optional[str]) -> Optional[str]:
        """
        Validate an optional email address.

        Returns:
            The stripped email, or None when not provided

        Raises:
            ValidationError: If the address does not match the pattern
        """
        if email is None:
            return None
        candidate = email.strip()
        if not EMAIL_PATTERN.match(candidate):
            raise ValidationError(f"Invalid email address: '{email}'")
        return candidate

    @staticmethod
    def normalize_float(value: Any, default: float = 0.0) -> float:
        """
        Convert value to float safely.

        Raises:
            ValidationError: If the value is not numeric
        """
        if value is None or value == "":
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"Cannot convert '{value}' to a number")

    @staticmethod
    def normalize_bool(value: Any) -> Optional[bool]:
        """
        Convert various inputs to boolean.

        Raises:
            ValidationError: If conversion fails
        """
        if isinstance(value, bool):
            return value
        elif isinstance(value, (int, float)):
            if value == 0:
                return False
            elif value == 1:
                return True
            raise ValidationError(f"Cannot convert numeric '{value}' to boolean")
        elif isinstance(value, str):
            if value.lower() in ("true", "1", "yes", "on"):
                return True
            elif value.lower() in ("false", "0", "no", "off"):
                return False
            raise ValidationError(f"Cannot convert '{value}' to boolean")
        elif value is not None:
            return bool(value)
        return None
