"""Deserialization of resolved configuration trees into target schemas."""

import collections.abc
import datetime
import enum
import inspect
import logging
from typing import Any, Dict, List, Literal, Union, get_args, get_origin

from .exceptions import (
    ConstructionError,
    DeserializationError,
    MatchingError,
    TypeValidationError,
    ValidationErrorRecord,
)
from .schema import EMPTY, TARGET_TYPE, VAR_KEYWORD, get_parameters, get_target_name, is_schema_class
from .values import is_table

logger = logging.getLogger(__name__)

ROOT_LABEL = "<root>"

_SEQUENCE_ORIGINS = {
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
}
_MAPPING_ORIGINS = (dict, collections.abc.Mapping, collections.abc.MutableMapping)


class Deserializer:
    """Builds target objects from resolved configuration trees, checking types along the way."""

    def __init__(self, strict: bool = True):
        """Initialize deserializer.

        Args:
            strict: Report keys the target does not accept as errors instead of ignoring them
        """
        self.strict = strict

    def deserialize(self, tree: Any, target: TARGET_TYPE) -> Any:
        """Build a target from a configuration tree.

        Args:
            tree: Resolved configuration  # (nested dict)
            target: Class, function or type annotation to build

        Returns:
            Instance of the target  # (or the converted value for plain annotations)

        Raises:
            DeserializationError: With every mismatch found, if there is any
        """
        errors: List[ValidationErrorRecord] = []
        if is_schema_class(target) or inspect.isfunction(target):
            result = self._build_object(tree, target, "", errors)
        else:
            result = self._convert(tree, target, "", errors)

        if errors:
            raise DeserializationError(errors)
        logger.debug("Deserialized configuration into %s", get_target_name(target))
        return result

    def _build_object(self, config: Any, target: TARGET_TYPE, path: str, errors: List[ValidationErrorRecord]) -> Any:
        """Build one object from a table.

        Args:
            config: Table holding the object parameters
            target: Class or function to call
            path: Current path for error reporting  # (dot-separated path)
            errors: Collected errors  # (appended in-place)

        Returns:
            Built object, or None if any error was found below this path
        """
        if not is_table(config):
            errors.append(TypeValidationError(_label(path), target, config, type(config)))
            return None

        params = get_parameters(target)
        error_count = len(errors)
        errors.extend(self._validate_parameter_mapping(config, target, path, params))

        has_kwargs = any(info["kind"] == VAR_KEYWORD for info in params.values())
        kwargs: Dict[str, Any] = {}
        for key, value in config.items():
            if key in params and params[key]["kind"] != VAR_KEYWORD:
                kwargs[key] = self._convert(value, params[key]["annotation"], _join(path, key), errors)
            elif has_kwargs:
                # Passed through untouched, there is no annotation to check against
                kwargs[key] = value

        if len(errors) > error_count:
            return None

        try:
            return target(**kwargs)
        except (TypeError, ValueError) as e:
            errors.append(ConstructionError(_label(path), get_target_name(target), str(e)))
            return None

    def _validate_parameter_mapping(
        self, config: Dict[str, Any], target: TARGET_TYPE, path: str, params: Dict[str, Dict[str, Any]]
    ) -> List[MatchingError]:
        """Validate parameter mapping.

        Args:
            config: Object configuration  # (config dict with parameters)
            target: Target being configured
            path: Current path for error reporting  # (dot-separated path)
            params: Parameters of the target  # (param name -> param info)

        Returns:
            List of parameter mapping errors
        """
        errors = []  # List[MatchingError] (validation errors)
        actual_params = set(config.keys())  # Set[str] (provided parameters)

        expected_params = set()  # Set[str] (all acceptable parameters)
        required_params = set()  # Set[str] (parameters without defaults)
        has_kwargs = False
        for param_name, param_info in params.items():
            if param_info["kind"] == VAR_KEYWORD:
                has_kwargs = True
                continue
            expected_params.add(param_name)
            if param_info["default"] is EMPTY:
                required_params.add(param_name)

        if self.strict and not has_kwargs:
            unexpected = actual_params - expected_params
            if unexpected:
                errors.append(
                    MatchingError(
                        error_type="Unexpected parameters",
                        parameters=[_join(path, param) for param in sorted(unexpected)],
                        target_name=get_target_name(target),
                    )
                )

        missing = required_params - actual_params
        if missing:
            errors.append(
                MatchingError(
                    error_type="Missing parameters",
                    parameters=[_join(path, param) for param in sorted(missing)],
                    target_name=get_target_name(target),
                )
            )

        return errors

    def _convert(self, value: Any, annotation: Any, path: str, errors: List[ValidationErrorRecord]) -> Any:
        """Check a value against an annotation and convert it.

        Args:
            value: Value to convert
            annotation: Expected type  # (type annotation from signature)
            path: Parameter path for error reporting  # (dot-separated path)
            errors: Collected errors  # (appended in-place)

        Returns:
            Converted value  # (the value itself when nothing needs converting)
        """
        # Unannotated parameters and unresolved forward references are not checked
        if annotation is EMPTY or annotation is Any or isinstance(annotation, str):
            return value
        if hasattr(annotation, "__forward_arg__"):
            return value

        origin = get_origin(annotation)
        args = get_args(annotation)

        if _is_union(annotation):
            # The first member the value fits decides the conversion
            for arg in args:
                if self._matches(value, arg):
                    return self._convert(value, arg, path, errors)
            errors.append(TypeValidationError(_label(path), annotation, value, type(value)))
            return value

        if is_schema_class(annotation):
            return self._build_object(value, annotation, path, errors)

        if inspect.isclass(annotation) and issubclass(annotation, enum.Enum):
            try:
                return annotation(value)
            except ValueError:
                errors.append(TypeValidationError(_label(path), annotation, value, type(value)))
                return value

        if origin in _SEQUENCE_ORIGINS:
            return self._convert_sequence(value, annotation, path, errors)

        if origin in _MAPPING_ORIGINS:
            if not is_table(value):
                errors.append(TypeValidationError(_label(path), annotation, value, type(value)))
                return value
            value_type = args[1] if len(args) == 2 else Any
            return {key: self._convert(item, value_type, _join(path, key), errors) for key, item in value.items()}

        if not self._matches(value, annotation):
            errors.append(TypeValidationError(_label(path), annotation, value, type(value)))
            return value

        # Integers are valid floats
        if annotation is float and isinstance(value, int):
            return float(value)
        return value

    def _convert_sequence(self, value: Any, annotation: Any, path: str, errors: List[ValidationErrorRecord]) -> Any:
        """Convert an array to the container type of a ``list[X]``, ``tuple[...]`` or ``set[X]`` annotation."""
        origin = get_origin(annotation)
        args = get_args(annotation)
        if not isinstance(value, list):
            errors.append(TypeValidationError(_label(path), annotation, value, type(value)))
            return value

        if origin is tuple and args and args[-1] is not Ellipsis:
            # Fixed-length tuple, one annotation per position
            if len(args) != len(value):
                errors.append(TypeValidationError(_label(path), annotation, value, type(value)))
                return value
            item_types = list(args)
        else:
            item_types = [args[0] if args else Any] * len(value)

        items = [
            self._convert(item, item_type, f"{path}[{index}]", errors)
            for index, (item, item_type) in enumerate(zip(value, item_types))
        ]
        return _SEQUENCE_ORIGINS[origin](items)

    def _matches(self, value: Any, annotation: Any) -> bool:
        """Check if a value fits an annotation, without looking inside containers.

        Args:
            value: Value to check
            annotation: Type annotation to match against

        Returns:
            True if value matches expected type
        """
        if annotation is EMPTY or annotation is Any or isinstance(annotation, str):
            return True
        if annotation is None or annotation is type(None):
            return value is None

        origin = get_origin(annotation)
        if _is_union(annotation):
            return any(self._matches(value, arg) for arg in get_args(annotation))
        if origin is Literal:
            # True == 1, so types have to agree too
            return any(value == arg and type(value) is type(arg) for arg in get_args(annotation))
        if is_schema_class(annotation):
            return is_table(value)
        if origin in _SEQUENCE_ORIGINS:
            return isinstance(value, list)
        if origin in _MAPPING_ORIGINS:
            return is_table(value)
        if inspect.isclass(annotation) and issubclass(annotation, enum.Enum):
            return any(value == member.value for member in annotation)

        # bool is a subclass of int, but a flag is never a number
        if annotation in (int, float):
            if isinstance(value, bool):
                return False
            return isinstance(value, int) if annotation is int else isinstance(value, (int, float))
        if annotation is datetime.date:
            return isinstance(value, datetime.date) and not isinstance(value, datetime.datetime)
        if inspect.isclass(annotation):
            if annotation in _SEQUENCE_ORIGINS:
                return isinstance(value, list)
            return isinstance(value, annotation)

        # Other typing constructs are not checked
        return True


def deserialize(tree: Any, target: TARGET_TYPE, strict: bool = True) -> Any:
    """Build a target from a resolved configuration tree.

    Args:
        tree: Resolved configuration  # (nested dict)
        target: Class, function or type annotation to build
        strict: Report keys the target does not accept as errors

    Returns:
        Instance of the target

    Raises:
        DeserializationError: If the tree does not fit the target
    """
    return Deserializer(strict=strict).deserialize(tree, target)


def _is_union(annotation: Any) -> bool:
    """Check if an annotation is a union, written with ``Union``/``Optional`` or ``|``."""
    return get_origin(annotation) is Union or annotation.__class__.__name__ == "UnionType"


def _join(path: str, key: str) -> str:
    return f"{path}.{key}" if path else key


def _label(path: str) -> str:
    return path or ROOT_LABEL
