"""Unified error types for the upload pipeline."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Machine-readable failure reasons."""
    # Setup
    NO_CLIENT = "NoClient"
    UNKNOWN_USER = "UnknownUser"
    AUTH_FAILED = "AuthFailed"

    # Input validation
    READ_PARTS_FOLDER = "ReadPartsFolder"
    WRONG_FILE_EXTENSION = "WrongFileExtension"
    MISSING_FILE_STEM = "MissingFileStem"
    CONVERT_PATH_TO_STRING = "ConvertPathToString"
    PARSE_PART_NUMBER = "ParsePartNumber"
    DUPLICATE_PART_NUMBER = "DuplicatePartNumber"
    PART_COUNT_MISMATCH = "PartCountMismatch"
    REMOVE_PART_FILE = "RemovePartFile"
    PARSE_DATE = "ParseDate"

    # Remote platform
    PLATFORM_REQUEST_FAILED = "PlatformRequestFailed"
    MISSING_ID = "MissingId"

    # Persistence
    DATABASE_ERROR = "DatabaseError"
    ROW_NOT_FOUND = "RowNotFound"
    PART_ALREADY_UPLOADED = "PartAlreadyUploaded"
    INVALID_STATUS_TRANSITION = "InvalidStatusTransition"


@dataclass
class AdapterError(Exception):
    """
    Unified error type for all pipeline failures.

    Carries structured error information so the orchestrator can record a
    readable diagnostic without knowing about external API details.
    """
    code: ErrorCode
    message: str
    details: Optional[Any] = None

    def __str__(self) -> str:
        code = self.code.value if isinstance(self.code, ErrorCode) else self.code
        if self.details:
            return f"[{code}] {self.message} (details: {self.details})"
        return f"[{code}] {self.message}"


class ConfigurationError(AdapterError):
    """A video cannot be processed because of missing setup (client, user)."""


class AuthError(AdapterError):
    """Credentials for an account could not be obtained."""


class SegmentError(AdapterError):
    """Segment files on disk are missing, misnamed or incomplete."""


class TemplateError(AdapterError):
    """Title or description could not be rendered."""
