"""Parameter descriptions and the validators attached to them.

A declaration spec is turned into a validator by ``build_validator``:

    param("id", int)                       type check
    param("state", ["open", "closed"])     one of a fixed set of values
    param("slug", re.compile(r"^[a-z-]+$")) regular expression
    param("age", lambda v: int(v) >= 0)    custom predicate
    param("user", dict, nested=lambda p: p.param("name", str, required=True))

Validation never mutates the value or the description.
"""

import re
from abc import abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict

from api_doc_dsl.errors import (
    ConfigurationError,
    InvalidValueError,
    MissingParameterError,
    TypeMismatchError,
    ValidationError,
)

INTEGER_RE = re.compile(r"^[-+]?\d+$")
NUMBER_RE = re.compile(r"^[-+]?(\d+\.?\d*|\.\d+)([eE][-+]?\d+)?$")
BOOLEAN_STRINGS = {"true", "false", "1", "0"}

TYPE_NAMES = {
    int: ("Integer", "numeric"),
    float: ("Numeric", "numeric"),
    bool: ("Boolean", "boolean"),
    str: ("String", "string"),
    list: ("Array", "array"),
    dict: ("Hash", "hash"),
}


class ParamValidator(BaseModel):
    """Base class for a single parameter's validation rule."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def expected_type(self) -> str:
        return "string"

    @abstractmethod
    def check(self, param: "ParamDescription", value: Any) -> None:
        """Raise a ValidationError subclass when ``value`` does not conform."""

    @abstractmethod
    def describe(self) -> str:
        """Human-readable rule, rendered into the documentation."""


class TypeValidator(ParamValidator):
    expected: type

    @property
    def expected_type(self) -> str:
        return TYPE_NAMES.get(self.expected, (None, self.expected.__name__.lower()))[1]

    @property
    def type_name(self) -> str:
        return TYPE_NAMES.get(self.expected, (self.expected.__name__, None))[0]

    def matches(self, value: Any) -> bool:
        # Request parameters usually arrive as strings, so numbers and
        # booleans are also accepted in their textual form. Booleans also
        # accept the integers 0 and 1, matching "0" and "1".
        if self.expected is bool:
            if isinstance(value, str):
                return value.lower() in BOOLEAN_STRINGS
            return isinstance(value, bool) or (isinstance(value, int) and value in (0, 1))
        if isinstance(value, bool):
            return False
        if self.expected is int:
            return isinstance(value, int) or (isinstance(value, str) and INTEGER_RE.match(value) is not None)
        if self.expected is float:
            return isinstance(value, (int, float)) or (isinstance(value, str) and NUMBER_RE.match(value) is not None)
        if self.expected is list:
            return isinstance(value, (list, tuple))
        if self.expected is dict:
            return isinstance(value, Mapping)
        return isinstance(value, self.expected)

    def check(self, param: "ParamDescription", value: Any) -> None:
        if not self.matches(value):
            raise TypeMismatchError(param.full_name, self.type_name, value)

    def describe(self) -> str:
        return f"Must be {self.type_name}"


class EnumValidator(ParamValidator):
    values: list[Any]

    def check(self, param: "ParamDescription", value: Any) -> None:
        if value not in self.values:
            raise InvalidValueError(param.full_name, self.describe(), value)

    def describe(self) -> str:
        return "Must be one of: " + ", ".join(str(v) for v in self.values) + "."


class RegexValidator(ParamValidator):
    pattern: re.Pattern

    def check(self, param: "ParamDescription", value: Any) -> None:
        if not isinstance(value, str) or self.pattern.search(value) is None:
            raise InvalidValueError(param.full_name, self.describe(), value)

    def describe(self) -> str:
        return f"Must match regular expression /{self.pattern.pattern}/."


class PredicateValidator(ParamValidator):
    """Runs a caller-supplied check.

    The check passes by returning a truthy value. Returning a string, or any
    falsy value, fails; a returned string becomes the error message. A
    TypeError or ValueError raised by the check also counts as a failure.
    """

    predicate: Callable[[Any], Any]
    message: str | None = None

    def check(self, param: "ParamDescription", value: Any) -> None:
        try:
            result = self.predicate(value)
        except (TypeError, ValueError) as e:
            raise ValidationError(param.full_name, self.message or f"Invalid parameter '{param.full_name}' value {value!r}: {e}") from e
        if isinstance(result, str):
            raise ValidationError(param.full_name, result)
        if not result:
            raise ValidationError(param.full_name, self.message or f"Invalid parameter '{param.full_name}' value {value!r}")

    def describe(self) -> str:
        return self.message or "Must pass a custom check"


class ParamDescription(BaseModel):
    """A single declared parameter."""

    model_config = ConfigDict(frozen=True)

    name: str
    full_name: str
    validator: ParamValidator
    required: bool = False
    description: str = ""

    def validate_value(self, value: Any) -> None:
        self.validator.check(self, value)

    def to_json(self) -> dict:
        data = {
            "name": self.name,
            "full_name": self.full_name,
            "description": self.description,
            "required": self.required,
            "validator": self.validator.describe(),
            "expected_type": self.validator.expected_type,
        }
        if isinstance(self.validator, NestedValidator):
            data["params"] = [p.to_json() for p in self.validator.params.values()]
        return data


class NestedValidator(ParamValidator):
    """Value must be a mapping whose entries match the nested params.

    Keys without a declared param are ignored unless ``strict`` is set.
    """

    params: dict[str, ParamDescription]
    strict: bool = False

    @property
    def expected_type(self) -> str:
        return "hash"

    def check(self, param: ParamDescription, value: Any) -> None:
        if not isinstance(value, Mapping):
            raise TypeMismatchError(param.full_name, "Hash", value)
        validate_mapping(self.params, value)
        if self.strict:
            for key in value:
                if key not in self.params:
                    raise InvalidValueError(f"{param.full_name}[{key}]", "Unknown parameter", value[key])

    def describe(self) -> str:
        return "Must be a Hash"


def validate_mapping(params: Mapping[str, ParamDescription], values: Mapping) -> None:
    """Check ``values`` against ``params``, stopping at the first failure.

    Missing required params are reported before any invalid value; both
    passes go in declaration order.
    """
    for name, param in params.items():
        if param.required and name not in values:
            raise MissingParameterError(param.full_name)
    for name, param in params.items():
        if name in values:
            param.validate_value(values[name])


def build_validator(
    spec: Any,
    *,
    nested: dict[str, ParamDescription] | None = None,
    strict: bool = False,
    message: str | None = None,
) -> ParamValidator:
    """Map a declaration spec onto a validator."""
    if nested is not None:
        if spec not in (None, dict):
            raise ConfigurationError(f"Nested params require a dict spec, got {spec!r}")
        return NestedValidator(params=nested, strict=strict)
    if isinstance(spec, type):
        return TypeValidator(expected=spec)
    if isinstance(spec, re.Pattern):
        return RegexValidator(pattern=spec)
    if isinstance(spec, (list, tuple)):
        return EnumValidator(values=list(spec))
    if isinstance(spec, (set, frozenset)):
        return EnumValidator(values=sorted(spec, key=str))
    if callable(spec):
        return PredicateValidator(predicate=spec, message=message)
    raise ConfigurationError(f"Unsupported validator spec {spec!r}")


class ParamScope:
    """Collects params declared inside a nested block, in declaration order."""

    def __init__(self, prefix: str | None = None):
        self.prefix = prefix
        self.params: dict[str, ParamDescription] = {}

    def param(
        self,
        name: str,
        spec: Any = None,
        *,
        required: bool = False,
        desc: str = "",
        nested: Callable[["ParamScope"], Any] | None = None,
        strict: bool = False,
        message: str | None = None,
    ) -> "ParamScope":
        self.params[name] = make_param(
            name, spec, prefix=self.prefix, required=required, desc=desc,
            nested=nested, strict=strict, message=message,
        )
        return self


def make_param(
    name: str,
    spec: Any = None,
    *,
    prefix: str | None = None,
    required: bool = False,
    desc: str = "",
    nested: Callable[[ParamScope], Any] | None = None,
    strict: bool = False,
    message: str | None = None,
) -> ParamDescription:
    full_name = f"{prefix}[{name}]" if prefix else name
    nested_params = None
    if nested is not None:
        scope = ParamScope(full_name)
        nested(scope)
        nested_params = scope.params
    elif spec is None:
        raise ConfigurationError(f"Param {full_name} needs a validator spec")
    validator = build_validator(spec, nested=nested_params, strict=strict, message=message)
    return ParamDescription(
        name=name,
        full_name=full_name,
        validator=validator,
        required=required,
        description=desc,
    )
