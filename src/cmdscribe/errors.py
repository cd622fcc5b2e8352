"""Custom exception hierarchy for cmdscribe."""

from enum import Enum


class CmdscribeError(Exception):
    """Base exception for app-specific failures."""


class DescriptorError(CmdscribeError):
    """A function could not be turned into a descriptor."""


class IntrospectionUnavailable(TypeError, DescriptorError):
    """Value is not a describable function, or carries no symbol information."""


class SourceUnavailable(DescriptorError):
    """The function's originating source line cannot be read."""


class ParameterCountMismatch(DescriptorError):
    """Resolved parameter names disagree with the reflected arity."""


class ConfigError(ValueError, CmdscribeError):
    """Manifest/configuration validation errors."""


class UsageError(ValueError, CmdscribeError):
    """Command usage or user-input errors."""

    def __init__(self, message: str, usage: str = "") -> None:
        super().__init__(message)
        self.usage = usage


class MissReason(str, Enum):
    """Why a lookup or dispatch came back empty."""

    UNKNOWN_KEY = "unknown_key"
    SIGNATURE_MISMATCH = "signature_mismatch"
