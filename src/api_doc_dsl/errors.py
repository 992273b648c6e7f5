"""Exception hierarchy for declaration, registration and call-time validation.

Registration errors propagate to whoever drives controller loading.
Validation errors are raised from the wrapped handler and are meant to be
turned into client-facing 4xx responses by the surrounding framework.
"""


class ApiDocError(Exception):
    """Base class for all api-doc-dsl errors."""


class ConfigurationError(ApiDocError):
    """A resource name, version or validator spec cannot be resolved."""


class DuplicateDeclarationError(ApiDocError):
    """A single-valued declaration was made twice for one pending method."""


class UnresolvableReferenceError(ApiDocError, TypeError):
    """A lookup key has the wrong shape entirely (not a string or controller)."""


class ValidationError(ApiDocError):
    """A request parameter failed validation."""

    status_code = 400

    def __init__(self, param: str, message: str):
        super().__init__(message)
        self.param = param
        self.message = message


class MissingParameterError(ValidationError):
    def __init__(self, param: str):
        super().__init__(param, f"Missing parameter {param}")


class TypeMismatchError(ValidationError):
    def __init__(self, param: str, expected: str, value):
        super().__init__(param, f"Invalid parameter '{param}' value {value!r}: Must be {expected}")
        self.expected = expected
        self.value = value


class InvalidValueError(ValidationError):
    def __init__(self, param: str, message: str, value):
        super().__init__(param, f"Invalid parameter '{param}' value {value!r}: {message}")
        self.value = value
