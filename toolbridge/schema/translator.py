"""Translation of JSON parameter schemas into runtime validation models.

Upstream servers advertise each tool's parameters as a loosely typed JSON
schema. The bridge has no static knowledge of these shapes, so it builds a
pydantic model per tool at registration time and validates every call
against it.

Translation is total: any node the translator does not understand, and any
field whose translation fails, becomes ``Any``. One malformed field never
hides an otherwise usable tool.

Supported kinds:
    - string, integer, number, boolean (strict, no coercion from strings)
    - integer/number ``minimum`` (becomes ``ge``)
    - object with ``properties`` (nested model, honours its own ``required``)
    - array (``list[Any]``; element schemas are NOT propagated)
    - anything else (``Any``)

Example:
    ```python
    model = translate(
        {"count": {"type": "integer", "minimum": 1, "default": 5}},
        model_name="repeat"
    )
    model.validate({})           # {"count": 5}
    model.validate({"count": 3}) # {"count": 3}
    model.check({"count": 0})    # [Violation(location="count", ...)]
    ```
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, ValidationError, create_model
from pydantic.fields import FieldInfo

from toolbridge.core.errors import ArgumentValidationError, SchemaTranslationError

logger = logging.getLogger(__name__)

FieldSpec = Tuple[Any, FieldInfo]


class SchemaKind(str, Enum):
    """Closed set of schema kinds the translator distinguishes."""

    STRING = "string"
    INTEGER = "integer"
    NUMBER = "number"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    ANY = "any"

    @classmethod
    def of(cls, node: Any) -> "SchemaKind":
        """Classify a schema node. Unknown, missing or non-string types are ANY."""
        if not isinstance(node, Mapping):
            return cls.ANY
        declared = node.get("type")
        if not isinstance(declared, str):
            return cls.ANY
        try:
            kind = cls(declared)
        except ValueError:
            return cls.ANY
        if kind is cls.OBJECT and "properties" not in node:
            return cls.ANY
        return kind


class ArgumentsModel(BaseModel):
    """Base class of every generated model. Unknown arguments are dropped."""

    model_config = ConfigDict(extra="ignore")

    # Fields whose schema declares a default, forwarded even when it is null
    declared_defaults: ClassVar[FrozenSet[str]] = frozenset()


@dataclass(frozen=True)
class Violation:
    """One reason a candidate argument mapping was rejected."""

    location: str
    kind: str
    message: str

    def __str__(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


def _minimum(node: Mapping[str, Any]) -> Dict[str, Any]:
    if "minimum" not in node:
        return {}
    minimum = node["minimum"]
    if isinstance(minimum, bool) or not isinstance(minimum, (int, float)):
        raise SchemaTranslationError(f"minimum must be a number, got {minimum!r}")
    return {"ge": minimum}


def _build_string(node: Mapping[str, Any], path: str) -> Tuple[Any, Dict[str, Any]]:
    return str, {"strict": True}


def _build_integer(node: Mapping[str, Any], path: str) -> Tuple[Any, Dict[str, Any]]:
    return int, {"strict": True, **_minimum(node)}


def _build_number(node: Mapping[str, Any], path: str) -> Tuple[Any, Dict[str, Any]]:
    return float, {"strict": True, **_minimum(node)}


def _build_boolean(node: Mapping[str, Any], path: str) -> Tuple[Any, Dict[str, Any]]:
    return bool, {"strict": True}


def _build_object(node: Mapping[str, Any], path: str) -> Tuple[Any, Dict[str, Any]]:
    properties = node["properties"]
    if not isinstance(properties, Mapping):
        raise SchemaTranslationError(f"properties must be an object, got {type(properties).__name__}")
    return _create_model(properties, node.get("required"), path), {}


def _build_array(node: Mapping[str, Any], path: str) -> Tuple[Any, Dict[str, Any]]:
    # Element schemas are intentionally ignored: arrays accept any elements.
    return List[Any], {}


def _build_any(node: Mapping[str, Any], path: str) -> Tuple[Any, Dict[str, Any]]:
    return Any, {}


_BUILDERS: Dict[SchemaKind, Callable[[Mapping[str, Any], str], Tuple[Any, Dict[str, Any]]]] = {
    SchemaKind.STRING: _build_string,
    SchemaKind.INTEGER: _build_integer,
    SchemaKind.NUMBER: _build_number,
    SchemaKind.BOOLEAN: _build_boolean,
    SchemaKind.OBJECT: _build_object,
    SchemaKind.ARRAY: _build_array,
}


def _finish(
    name: str,
    annotation: Any,
    constraints: Dict[str, Any],
    node: Mapping[str, Any],
    required: bool
) -> FieldSpec:
    kwargs = dict(constraints)
    kwargs["alias"] = name
    description = node.get("description")
    if isinstance(description, str) and description:
        kwargs["description"] = description

    # Defaults are attached as-is; they are not checked against constraints.
    if "default" in node:
        return annotation, Field(node["default"], **kwargs)
    if required:
        return annotation, Field(..., **kwargs)
    return Optional[annotation], Field(None, **kwargs)


def _fallback(name: str, node: Any, required: bool) -> FieldSpec:
    if isinstance(node, Mapping) and "default" in node:
        return Any, Field(node["default"], alias=name)
    if required:
        return Any, Field(..., alias=name)
    return Any, Field(None, alias=name)


def _build_field(name: str, node: Any, required: bool, path: str) -> FieldSpec:
    if not isinstance(node, Mapping):
        raise SchemaTranslationError(f"schema must be an object, got {type(node).__name__}")
    kind = SchemaKind.of(node)
    annotation, constraints = _BUILDERS.get(kind, _build_any)(node, path)
    return _finish(name, annotation, constraints, node, required)


def _model_name(path: str) -> str:
    name = re.sub(r"\W", "_", path)
    if not name or name[0].isdigit():
        name = f"Model_{name}"
    return name


def _create_model(
    properties: Mapping[str, Any],
    required: Optional[Sequence[str]],
    path: str
) -> Type[BaseModel]:
    required_names = set(required) if isinstance(required, (list, tuple)) else set()
    fields: Dict[str, FieldSpec] = {}
    declared_defaults = set()

    for index, (name, node) in enumerate(properties.items()):
        field_path = f"{path}.{name}"
        has_default = isinstance(node, Mapping) and "default" in node
        is_required = name in required_names and not has_default
        if has_default:
            declared_defaults.add(f"field_{index}")
        try:
            fields[f"field_{index}"] = _build_field(str(name), node, is_required, field_path)
        except Exception as e:
            logger.error("Error converting schema for %s, falling back to Any: %s", field_path, e)
            fields[f"field_{index}"] = _fallback(str(name), node, is_required)

    model = create_model(_model_name(path), __base__=ArgumentsModel, **fields)
    model.declared_defaults = frozenset(declared_defaults)
    return model


def _dump(instance: BaseModel) -> Dict[str, Any]:
    dumped: Dict[str, Any] = {}
    declared_defaults = getattr(type(instance), "declared_defaults", frozenset())
    for name, info in type(instance).model_fields.items():
        value = getattr(instance, name)
        # Optional arguments the caller left out are not forwarded
        if name not in instance.model_fields_set and value is None and name not in declared_defaults:
            continue
        if isinstance(value, BaseModel):
            value = _dump(value)
        dumped[info.alias or name] = value
    if instance.model_extra:
        dumped.update(instance.model_extra)
    return dumped


class ValidationModel:
    """Runtime-checkable form of one tool's parameter schema.

    Built once per tool and shared by every invocation; it holds no per-call
    state.
    """

    def __init__(self, model: Type[BaseModel], name: str):
        self._model = model
        self.name = name

    @property
    def model(self) -> Type[BaseModel]:
        """The generated pydantic model class."""
        return self._model

    @property
    def field_names(self) -> List[str]:
        """Argument names in schema order."""
        return [info.alias or name for name, info in self._model.model_fields.items()]

    def check(self, arguments: Any) -> List[Violation]:
        """Return every violation in ``arguments`` without raising."""
        try:
            self._model.model_validate(arguments if arguments is not None else {})
        except ValidationError as e:
            return _violations(e)
        return []

    def validate(self, arguments: Any, *, tool_name: Optional[str] = None) -> Dict[str, Any]:
        """Validate ``arguments`` and return them with defaults applied.

        Raises:
            ArgumentValidationError: If any field is missing, mistyped or out of range
        """
        try:
            instance = self._model.model_validate(arguments if arguments is not None else {})
        except ValidationError as e:
            raise ArgumentValidationError(_violations(e), tool_name=tool_name) from e
        return _dump(instance)

    def json_schema(self) -> Dict[str, Any]:
        """JSON schema advertised to outward clients."""
        return self._model.model_json_schema(by_alias=True)


def _violations(error: ValidationError) -> List[Violation]:
    return [
        Violation(
            location=".".join(str(part) for part in detail["loc"]),
            kind=detail["type"],
            message=detail["msg"]
        )
        for detail in error.errors()
    ]


def translate(
    properties: Any,
    required: Optional[Sequence[str]] = None,
    *,
    model_name: str = "Arguments"
) -> ValidationModel:
    """Translate a ``properties`` mapping into a ValidationModel.

    Args:
        properties: Mapping of argument name to JSON schema node
        required: Names of required arguments, as in JSON schema
        model_name: Name for the generated model (usually the tool name)

    Returns:
        The validation model. Never raises; malformed input degrades to ``Any``.
    """
    if properties is None:
        properties = {}
    if not isinstance(properties, Mapping):
        logger.error("Schema properties for %s are not an object, accepting no arguments", model_name)
        properties = {}

    try:
        model = _create_model(properties, required, model_name)
    except Exception as e:
        logger.error("Error building model for %s, accepting any arguments: %s", model_name, e)
        model = create_model(_model_name(model_name), __config__=ConfigDict(extra="allow"))
    return ValidationModel(model, model_name)


def translate_schema(schema: Any, *, model_name: str = "Arguments") -> ValidationModel:
    """Translate a full tool input schema (``{"type": "object", "properties": ...}``)."""
    if not isinstance(schema, Mapping):
        return translate({}, model_name=model_name)
    return translate(schema.get("properties"), schema.get("required"), model_name=model_name)
