"""Custom exceptions for LayerConf."""

from dataclasses import dataclass
from pathlib import Path
from textwrap import dedent
from typing import Any, Literal, Optional, Union, get_args, get_origin


class LayerConfError(Exception):
    """Base exception for LayerConf errors."""

    pass


# ---------------------------------------------------------------------------
# Reference resolution
# ---------------------------------------------------------------------------


class ResolutionError(LayerConfError):
    """Base exception for failures while resolving ``${...}`` references."""

    pass


class CircularReferenceError(ResolutionError):
    """Raised when references do not settle within the pass limit or a string references itself."""

    def __init__(self, max_passes: Optional[int] = None, path: Optional[str] = None):
        self.max_passes = max_passes
        self.path = path
        if path is not None:
            message = f"Circular reference detected: '{path}' references itself"
        else:
            message = f"Circular reference detected: references did not settle after {max_passes} passes"
        super().__init__(message)


class ReferenceNotFoundError(ResolutionError):
    """Raised when a referenced dotted path does not exist in the configuration."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Referenced path not found: {path}")


class InvalidReferencePathError(ResolutionError):
    """Raised when a reference body is empty or contains an empty segment."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Invalid reference path: '{text}'")


class NonScalarReferenceError(ResolutionError):
    """Raised when a reference points at a table or an array."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Cannot reference non-scalar value: {path}")


class UnclosedReferenceError(ResolutionError):
    """Raised when ``${`` is not followed by a closing ``}``."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Unclosed reference (missing '}}') in: {text!r}")


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class ConfigSourceError(LayerConfError):
    """Base exception for errors raised while a source produces entries."""

    pass


class ConfigFileNotFoundError(ConfigSourceError):
    """Raised when a required configuration file does not exist."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Required config file not found: {path}")


class ConfigReadError(ConfigSourceError):
    """Raised when a configuration file exists but cannot be read."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to read config file '{path}': {reason}")


class ConfigParseError(ConfigSourceError):
    """Raised when a configuration file cannot be parsed."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to parse config file '{path}': {reason}")


class UnsupportedConfigFormatError(ConfigSourceError):
    """Raised when a configuration file has an unknown suffix."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Unsupported config format '{path.suffix}' for file: {path}")


class InvalidConfigRootError(ConfigSourceError):
    """Raised when a configuration root is not a mapping."""

    def __init__(self, origin: str, value: Any):
        self.origin = origin
        self.value = value
        super().__init__(f"Config root of {origin} must be a mapping, got {type(value).__name__}")


class InvalidOverrideError(ConfigSourceError):
    """Raised when a parameter override is not of the form ``key.path=value``."""

    def __init__(self, text: str):
        self.text = text
        super().__init__(f"Invalid override {text!r}, expected <key path>=<value in yaml>")


# ---------------------------------------------------------------------------
# Built configuration
# ---------------------------------------------------------------------------


class FrozenConfigError(LayerConfError, TypeError):
    """Raised when a built configuration is mutated."""

    pass


class MissingConfigError(LayerConfError):
    """Raised when an application context is built without a configuration."""

    def __init__(self):
        super().__init__("Application context requires a configuration")


@dataclass
class TypeValidationError:
    """Represents a type validation error."""

    parameter: str
    expected_type: Any
    actual_value: Any
    actual_type: type

    def format_error_message(self) -> str:
        """Format error message for type mismatch.

        Returns:
            Formatted error message string
        """
        expected_str = format_type(self.expected_type)
        actual_type_str = format_type(self.actual_type)

        # Tables are summarized, they can be arbitrarily large
        if isinstance(self.actual_value, dict):
            actual_value_str = "{...}"
        else:
            actual_value_str = repr(self.actual_value) if isinstance(self.actual_value, str) else str(self.actual_value)

        return dedent(f"""\
            ❌ Type mismatch
            Parameter: {self.parameter}
            Expected: {expected_str}
            Actual: {actual_value_str} ({actual_type_str})\
            """).strip()


@dataclass
class MatchingError:
    """Represents a parameter matching error."""

    error_type: str  # "Missing parameters" or "Unexpected parameters"
    parameters: list[str]
    target_name: str

    def format_error_message(self) -> str:
        """Format error message for parameter matching errors.

        Returns:
            Formatted error message string
        """
        param_list = ", ".join(self.parameters)
        return f"❌ {self.error_type}\nParameters: {param_list}\nTarget: {self.target_name}"


@dataclass
class ConstructionError:
    """Represents a target whose constructor rejected the configured values."""

    parameter: str
    target_name: str
    reason: str

    def format_error_message(self) -> str:
        """Format error message for a failed construction.

        Returns:
            Formatted error message string
        """
        return f"❌ Construction failed\nParameter: {self.parameter}\nTarget: {self.target_name}\nReason: {self.reason}"


ValidationErrorRecord = Union[TypeValidationError, MatchingError, ConstructionError]


class DeserializationError(LayerConfError):
    """Raised when the resolved configuration does not fit the target schema."""

    def __init__(self, errors: list[ValidationErrorRecord]):
        """Initialize deserialization error.

        Args:
            errors: List of validation errors
        """
        self.errors = errors
        error_messages = [error.format_error_message() for error in errors]
        super().__init__("\n\n".join(error_messages))


def format_type(type_obj: Any) -> str:
    """Format a type object for display in error and help messages.

    Args:
        type_obj: Type object to format

    Returns:
        Formatted type string
    """
    origin = get_origin(type_obj)
    args = get_args(type_obj)

    # Literal types show their values
    if origin is Literal:
        values = [repr(arg) for arg in args]
        return f"Literal[{', '.join(values)}]"

    # Optional[X] shows the inner type
    if origin is Union and len(args) == 2 and type(None) in args:
        inner_type = args[0] if args[1] is type(None) else args[1]
        return f"Optional[{format_type(inner_type)}]"

    # Parameterized generics and unions (including the | syntax)
    if origin is not None or type_obj.__class__.__name__ == "UnionType":
        return str(type_obj).replace("typing.", "")

    if type_obj in (int, float, str, bool, list, dict, tuple, type(None)):
        return type_obj.__name__

    if hasattr(type_obj, "__qualname__") and hasattr(type_obj, "__module__"):
        if type_obj.__module__ == "builtins":
            return type_obj.__qualname__
        return f"{type_obj.__module__}.{type_obj.__qualname__}"

    if hasattr(type_obj, "__name__"):
        return type_obj.__name__

    return str(type_obj)
