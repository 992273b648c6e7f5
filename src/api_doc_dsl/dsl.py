"""Declaration builders, the controller base class and the interceptor.

Declarations and the handler they describe form one unit:

    class UsersController(Controller, versions=["v1"]):

        @api("GET", "/users/:id", "Show a user").desc("show a user").param("id", int, required=True)
        def show(self):
            ...

Stacked builder decorators are merged in the order they appear in the
source. When the class body has been executed, every documented handler is
committed to the registry and replaced by a wrapper that validates
``self.params`` before running the original handler.
"""

import functools
import inspect
import logging
import sys
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict

from api_doc_dsl.description import MethodDescription
from api_doc_dsl.discovery import MODULE_PREFIX
from api_doc_dsl.identity import BASE_CONTROLLER, ControllerId, derive_controller_name
from api_doc_dsl.params import ParamScope
from api_doc_dsl.registry import Registry, app
from api_doc_dsl.staging import StagingBuffer

logger = logging.getLogger(__name__)

STAGING_ATTR = "__api_staging__"


class MethodDeclaration:
    """Chainable builder collecting the declarations for one handler."""

    def __init__(self):
        self.staging = StagingBuffer()

    def api(self, http_method: str, path: str, description: str = "") -> "MethodDeclaration":
        self.staging.declare_endpoint(http_method, path, description)
        return self

    def desc(self, text: str) -> "MethodDeclaration":
        self.staging.declare_description(text)
        return self

    def param(
        self,
        name: str,
        spec: Any = None,
        *,
        required: bool = False,
        desc: str = "",
        nested: Callable[[ParamScope], Any] | None = None,
        strict: bool = False,
        message: str | None = None,
    ) -> "MethodDeclaration":
        self.staging.declare_param(
            name, spec, required=required, desc=desc, nested=nested, strict=strict, message=message,
        )
        return self

    def error(self, code: int | str, description: str = "") -> "MethodDeclaration":
        self.staging.declare_error(code, description)
        return self

    def example(self, text: str) -> "MethodDeclaration":
        self.staging.declare_example(text)
        return self

    def see(self, reference: str) -> "MethodDeclaration":
        self.staging.declare_see(reference)
        return self

    def formats(self, *formats: str) -> "MethodDeclaration":
        self.staging.declare_formats(formats)
        return self

    def api_versions(self, *versions: str) -> "MethodDeclaration":
        self.staging.declare_versions(versions)
        return self

    def __call__(self, handler: Callable) -> Callable:
        # Each handler owns a copy, so one builder can decorate several handlers.
        staging = self.staging.copy()
        pending = getattr(handler, STAGING_ATTR, None)
        if pending is not None:
            # An inner decorator ran first but appears later in the source.
            staging.merge(pending)
        setattr(handler, STAGING_ATTR, staging)
        return handler


def api(http_method: str, path: str, description: str = "") -> MethodDeclaration:
    return MethodDeclaration().api(http_method, path, description)


def desc(text: str) -> MethodDeclaration:
    return MethodDeclaration().desc(text)


def param(name: str, spec: Any = None, **options) -> MethodDeclaration:
    return MethodDeclaration().param(name, spec, **options)


def error(code: int | str, description: str = "") -> MethodDeclaration:
    return MethodDeclaration().error(code, description)


def example(text: str) -> MethodDeclaration:
    return MethodDeclaration().example(text)


def see(reference: str) -> MethodDeclaration:
    return MethodDeclaration().see(reference)


def formats(*formats: str) -> MethodDeclaration:
    return MethodDeclaration().formats(*formats)


def api_versions(*versions: str) -> MethodDeclaration:
    return MethodDeclaration().api_versions(*versions)


def validating_wrapper(handler: Callable, description: MethodDescription) -> Callable:
    """Wrap a handler so the controller's params are checked before it runs."""

    @functools.wraps(handler)
    def wrapper(controller, *args, **kwargs):
        description.validate_params(controller.params)
        return handler(controller, *args, **kwargs)

    wrapper.api_method = description
    return wrapper


class Interceptor:
    """Commits staged declarations when a handler is defined."""

    def __init__(self, registry: Registry):
        self.registry = registry

    def method_defined(
        self,
        controller_cls: type,
        method_name: str,
        handler: Callable,
        staging: StagingBuffer,
    ) -> MethodDescription | None:
        # The buffer belongs to this handler only, so it is consumed even
        # when the method is ignored.
        staged = staging.snapshot_and_clear()
        if getattr(handler, STAGING_ATTR, None) is staging:
            delattr(handler, STAGING_ATTR)
        # Kept so a documentation reload can commit it again.
        controller_cls.__dict__.get("api_declarations", {})[method_name] = staged

        controller = controller_cls.api_identity
        if self.registry.ignored(controller, method_name):
            logger.debug("Ignoring %s#%s", controller, method_name)
            return None

        description = self.registry.define_method_description(controller, method_name, staged)
        if description is not None and self.registry.settings.validate_params:
            setattr(controller_cls, method_name, validating_wrapper(handler, description))
        return description


class ControllerOptions(BaseModel):
    """Class keywords a controller was declared with."""

    model_config = ConfigDict(frozen=True)

    versions: list[str] | None = None
    resource_id: str | None = None
    short: str | None = None
    description: str | None = None
    formats: list[str] | None = None


def register_controller_options(cls: type) -> None:
    """Record a controller's class-level options in its registry."""
    registry = cls.api_registry
    identity = cls.api_identity
    options = cls.api_options
    if options.resource_id is not None:
        registry.set_resource_id(identity, options.resource_id)
    if options.versions is not None:
        registry.set_controller_versions(identity, options.versions)
    if options.short is not None or options.description is not None or options.formats is not None:
        for version in registry.controller_versions(identity):
            registry.define_resource_description(
                identity, version, options.short, options.description, options.formats,
            )


def _controller_classes(base: type) -> Iterator[type]:
    for sub in base.__subclasses__():
        yield sub
        yield from _controller_classes(sub)


def _importable(cls: type) -> bool:
    module = sys.modules.get(cls.__module__)
    return module is not None and getattr(module, cls.__qualname__, None) is cls


def replay_controllers(registry: Registry) -> None:
    """Register again the imported controllers that a reload does not re-execute.

    Only classes bound at module level in an imported module are replayed.
    Controllers from modules loaded by ``load_controller_from_file`` are
    skipped; running their file again registers them.
    """
    if not registry.active_dsl():
        return
    for cls in _controller_classes(Controller):
        if cls.api_registry is not registry or cls.__module__.startswith(MODULE_PREFIX + "."):
            continue
        if not _importable(cls):
            continue
        register_controller_options(cls)
        for method_name, staged in cls.__dict__.get("api_declarations", {}).items():
            registry.define_method_description(cls.api_identity, method_name, staged)


class Controller:
    """Base class for documented controllers.

    Subclasses may pass ``registry``, ``versions``, ``resource_id``,
    ``short``, ``description`` and ``formats`` as class keywords, and set a
    ``controller_name`` class attribute to override the derived name.
    """

    api_registry: ClassVar[Registry] = app
    api_identity: ClassVar[ControllerId] = BASE_CONTROLLER
    api_options: ClassVar[ControllerOptions] = ControllerOptions()

    def __init__(self, params: Mapping | None = None):
        self.params = dict(params or {})

    def __init_subclass__(
        cls,
        *,
        registry: Registry | None = None,
        versions: Iterable[str] | None = None,
        resource_id: str | None = None,
        short: str | None = None,
        description: str | None = None,
        formats: Iterable[str] | None = None,
        **kwargs,
    ):
        super().__init_subclass__(**kwargs)
        if registry is not None:
            cls.api_registry = registry
        parent = next((b.api_identity for b in cls.__bases__ if issubclass(b, Controller)), BASE_CONTROLLER)
        cls.api_identity = ControllerId(
            name=cls.__name__,
            module=cls.__module__,
            controller_name=cls.__dict__.get("controller_name") or derive_controller_name(cls.__name__),
            parent=parent,
        )
        cls.api_options = ControllerOptions(
            versions=list(versions) if versions is not None else None,
            resource_id=resource_id,
            short=short,
            description=description,
            formats=list(formats) if formats is not None else None,
        )
        cls.api_declarations = {}

        registry = cls.api_registry
        if not registry.active_dsl():
            return
        register_controller_options(cls)

        interceptor = Interceptor(registry)
        for name, member in list(vars(cls).items()):
            if not inspect.isfunction(member):
                continue
            staging = getattr(member, STAGING_ATTR, None)
            if staging is not None:
                interceptor.method_defined(cls, name, member, staging)
