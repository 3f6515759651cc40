#!/usr/bin/env python3
"""Security validation utilities for github-org-export."""

import os
import re


class SecurityValidator:
    """Security validation utilities for input sanitization and validation."""

    # Maximum lengths accepted from the command line
    MAX_REPO_REFERENCE_LENGTH = 140
    MAX_ORG_NAME_LENGTH = 39
    MAX_HOSTNAME_LENGTH = 253
    MAX_PATH_LENGTH = 500
    MAX_ARCHIVE_NAME_LENGTH = 100

    # Allowed characters for various inputs
    SAFE_ORG_PATTERN = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?$")
    SAFE_REPO_REFERENCE_PATTERN = re.compile(
        r"^(?:[A-Za-z0-9-]+/)?[A-Za-z0-9._-]+$"
    )
    SAFE_HOSTNAME_PATTERN = re.compile(r"^[A-Za-z0-9.-]+(?::[0-9]{1,5})?$")
    SAFE_ARCHIVE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")

    @staticmethod
    def _has_control_chars(value: str) -> bool:
        return "\x00" in value or any(ord(c) < 32 for c in value)

    @classmethod
    def validate_org_name(cls, org: str) -> str:
        """Validate a GitHub organization login."""
        if not org or not isinstance(org, str):
            raise ValueError("Organization must be a non-empty string")

        if len(org) > cls.MAX_ORG_NAME_LENGTH:
            raise ValueError(
                f"Organization exceeds maximum length of {cls.MAX_ORG_NAME_LENGTH}"
            )

        if cls._has_control_chars(org):
            raise ValueError("Organization contains null bytes or control characters")

        if not cls.SAFE_ORG_PATTERN.match(org):
            raise ValueError(f"Organization contains invalid characters: {org}")

        return org

    @classmethod
    def validate_repo_reference(cls, reference: str) -> str:
        """Validate a repository reference (``name`` or ``owner/name``)."""
        if not reference or not isinstance(reference, str):
            raise ValueError("Repository reference must be a non-empty string")

        reference = reference.strip()
        if len(reference) > cls.MAX_REPO_REFERENCE_LENGTH:
            raise ValueError(
                "Repository reference exceeds maximum length of "
                f"{cls.MAX_REPO_REFERENCE_LENGTH}"
            )

        if cls._has_control_chars(reference):
            raise ValueError(
                "Repository reference contains null bytes or control characters"
            )

        # Check for path traversal attempts
        if ".." in reference or "\\" in reference:
            raise ValueError(
                f"Repository reference contains invalid path characters: {reference}"
            )

        if not cls.SAFE_REPO_REFERENCE_PATTERN.match(reference):
            raise ValueError(
                f"Repository reference contains invalid characters: {reference}"
            )

        return reference

    @classmethod
    def validate_hostname(cls, hostname: str) -> str:
        """Validate a GitHub hostname such as ``github.com`` or ``ghe.acme.com``."""
        if not hostname or not isinstance(hostname, str):
            raise ValueError("Hostname must be a non-empty string")

        hostname = hostname.strip().lower()
        if hostname.startswith(("http://", "https://")):
            raise ValueError("Hostname must not include a URL scheme")

        if len(hostname) > cls.MAX_HOSTNAME_LENGTH:
            raise ValueError(
                f"Hostname exceeds maximum length of {cls.MAX_HOSTNAME_LENGTH}"
            )

        if cls._has_control_chars(hostname):
            raise ValueError("Hostname contains null bytes or control characters")

        if not cls.SAFE_HOSTNAME_PATTERN.match(hostname):
            raise ValueError(f"Hostname contains invalid characters: {hostname}")

        return hostname

    @classmethod
    def validate_archive_name(cls, name: str) -> str:
        """Validate an archive base name; it becomes part of a file name."""
        if not name or not isinstance(name, str):
            raise ValueError("Archive name must be a non-empty string")

        if len(name) > cls.MAX_ARCHIVE_NAME_LENGTH:
            raise ValueError(
                f"Archive name exceeds maximum length of {cls.MAX_ARCHIVE_NAME_LENGTH}"
            )

        if "/" in name or "\\" in name or ".." in name:
            raise ValueError("Archive name contains invalid path characters")

        if not cls.SAFE_ARCHIVE_NAME_PATTERN.match(name):
            raise ValueError(f"Archive name contains invalid characters: {name}")

        # Drop a redundant suffix so the name is not doubled
        if name.endswith(".tar.gz"):
            name = name[: -len(".tar.gz")]
            if not name:
                raise ValueError("Archive name contains no valid characters")

        return name

    @classmethod
    def validate_file_path(cls, path: str) -> str:
        """Validate file path for security."""
        if not path or not isinstance(path, str):
            raise ValueError("File path must be a non-empty string")

        if len(path) > cls.MAX_PATH_LENGTH:
            raise ValueError(
                f"File path exceeds maximum length of {cls.MAX_PATH_LENGTH}"
            )

        # Check for null bytes
        if "\x00" in path:
            raise ValueError("File path contains null bytes")

        return os.path.normpath(path)

    @classmethod
    def sanitize_for_logging(cls, message: str) -> str:
        """Sanitize message for safe logging by removing potential credentials."""
        if not message:
            return message

        # Patterns to redact
        patterns = [
            (r"https://[^:/@]+:[^@]+@", "https://[REDACTED]@"),  # URLs with credentials
            (r"token[=:\s]+[^\s]+", "token=[REDACTED]"),  # Token assignments
            (r"bearer\s+[^\s]+", "Bearer [REDACTED]"),  # Authorization headers
            (r"github_pat_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # Fine-grained
            (r"gh[pousr]_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # Classic tokens
            # Pre-signed archive URLs carry their credentials in the query string
            (r"(X-Amz-[A-Za-z-]+=)[^&\s]+", r"\1[REDACTED]"),
        ]

        sanitized = message
        for pattern, replacement in patterns:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)

        return sanitized
