"""Controller identities and the string shorthand for resources and methods.

A controller is identified by a ``ControllerId`` that carries an explicit
link to its parent controller. Every chain ends at ``BASE_CONTROLLER``,
the sentinel for the framework's base handler type.

String references use ``#`` as a separator:

    "users"             resource in the default version
    "v2#users"          resource in version v2
    "users#create"      method in the default version
    "v2#users#create"   method in version v2
"""

import re
from collections.abc import Iterator

from pydantic import BaseModel, ConfigDict

from api_doc_dsl.errors import UnresolvableReferenceError


class ControllerId(BaseModel):
    """Identity of one handler group (one controller class)."""

    model_config = ConfigDict(frozen=True)

    name: str
    module: str = ""
    controller_name: str | None = None
    parent: "ControllerId | None" = None

    @property
    def is_root(self) -> bool:
        return self.parent is None

    def __str__(self) -> str:
        return self.name


BASE_CONTROLLER = ControllerId(name="Controller", module="api_doc_dsl.dsl")


def ancestry(controller: ControllerId) -> Iterator[ControllerId]:
    """Yield the controller, then each parent up to the root."""
    current: ControllerId | None = controller
    while current is not None:
        yield current
        current = current.parent


def derive_controller_name(class_name: str) -> str:
    """UsersController -> users, ApiKeysController -> api_keys."""
    base = class_name[: -len("Controller")] if class_name.endswith("Controller") else class_name
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", base).lower()


class ResourceRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str
    resource: str

    def __str__(self) -> str:
        return f"{self.version}#{self.resource}"


class MethodRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str
    resource: str
    method: str

    @property
    def resource_ref(self) -> ResourceRef:
        return ResourceRef(version=self.version, resource=self.resource)

    def __str__(self) -> str:
        return f"{self.version}#{self.resource}#{self.method}"


def _crumbs(text) -> list[str]:
    if not isinstance(text, str):
        raise UnresolvableReferenceError(f"Reference {text!r} must be a string")
    return text.split("#")


def parse_resource_ref(text: str, default_version: str) -> ResourceRef | None:
    """Parse "users" or "v2#users". Returns None for any other shape."""
    crumbs = _crumbs(text)
    if not all(crumbs):
        return None
    if len(crumbs) == 1:
        return ResourceRef(version=default_version, resource=crumbs[0])
    if len(crumbs) == 2:
        return ResourceRef(version=crumbs[0], resource=crumbs[1])
    return None


def parse_method_ref(text: str, default_version: str) -> MethodRef | None:
    """Parse "users#create" or "v2#users#create". Returns None for any other shape."""
    crumbs = _crumbs(text)
    if not all(crumbs):
        return None
    if len(crumbs) == 2:
        return MethodRef(version=default_version, resource=crumbs[0], method=crumbs[1])
    if len(crumbs) == 3:
        return MethodRef(version=crumbs[0], resource=crumbs[1], method=crumbs[2])
    return None
