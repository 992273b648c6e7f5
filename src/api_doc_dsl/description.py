"""Documentation records for handler methods and the resources grouping them."""

from collections.abc import Mapping

from pydantic import BaseModel, ConfigDict

from api_doc_dsl.config import Settings
from api_doc_dsl.identity import ControllerId, parse_method_ref
from api_doc_dsl.params import ParamDescription, validate_mapping


class Endpoint(BaseModel):
    """One route a method is reachable at."""

    model_config = ConfigDict(frozen=True)

    http_method: str  # GET / POST / PUT / DELETE / PATCH
    path: str  # /users/:id
    description: str = ""

    def to_json(self, settings: Settings, version: str) -> dict:
        return {
            "http_method": self.http_method,
            "api_url": settings.api_base_url_for(version).rstrip("/") + self.path,
            "short_description": self.description,
        }


class ErrorDescription(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: int | str
    description: str = ""

    def to_json(self) -> dict:
        return {"code": self.code, "description": self.description}


class MethodDescription(BaseModel):
    """Everything declared for one handler method, in one version.

    Built once from a staged declaration and never edited afterwards;
    redefinition replaces the whole record.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    resource_name: str
    version: str
    endpoints: list[Endpoint] = []
    description: str | None = None
    params: dict[str, ParamDescription] = {}
    errors: list[ErrorDescription] = []
    examples: list[str] = []
    see: str | None = None
    formats: list[str] | None = None

    @property
    def reference(self) -> str:
        return f"{self.version}#{self.resource_name}#{self.name}"

    def validate_params(self, params: Mapping) -> None:
        """Raise the first validation error for ``params``, in declaration order."""
        validate_mapping(self.params, params)

    def doc_url(self, settings: Settings) -> str:
        return settings.full_url(f"{self.version}/{self.resource_name}/{self.name}")

    def to_json(
        self,
        settings: Settings,
        resource_formats: list[str] | None = None,
        recorded_examples: list[str] | None = None,
    ) -> dict:
        return {
            "doc_url": self.doc_url(settings),
            "name": self.name,
            "description": self.description or "",
            "endpoints": [e.to_json(settings, self.version) for e in self.endpoints],
            "params": [p.to_json() for p in self.params.values()],
            "errors": [e.to_json() for e in self.errors],
            "examples": self.examples + (recorded_examples or []),
            "formats": self.formats or resource_formats or [],
            "see": self._see_json(settings),
        }

    def _see_json(self, settings: Settings) -> dict | None:
        if self.see is None:
            return None
        ref = parse_method_ref(self.see, self.version)
        return {
            "reference": self.see,
            "doc_url": settings.full_url(f"{ref.version}/{ref.resource}/{ref.method}") if ref else None,
        }


class ResourceDescription(BaseModel):
    """Methods of one controller within one version."""

    controller: ControllerId
    name: str
    version: str
    short_description: str | None = None
    full_description: str | None = None
    formats: list[str] | None = None
    methods: dict[str, MethodDescription] = {}

    def add_method_description(self, method: MethodDescription) -> None:
        if method.version != self.version or method.resource_name != self.name:
            raise ValueError(f"{method.reference} does not belong to {self.version}#{self.name}")
        self.methods[method.name] = method

    def remove_method_description(self, method_name: str) -> MethodDescription | None:
        return self.methods.pop(method_name, None)

    def doc_url(self, settings: Settings) -> str:
        return settings.full_url(f"{self.version}/{self.name}")

    def to_json(
        self,
        settings: Settings,
        method_name: str | None = None,
        recorded_examples: Mapping[str, list[str]] | None = None,
    ) -> dict:
        recorded_examples = recorded_examples or {}
        methods = self.methods
        if method_name is not None:
            methods = {k: v for k, v in methods.items() if k == method_name}
        return {
            "doc_url": self.doc_url(settings),
            "api_url": settings.api_base_url_for(self.version),
            "name": self.name,
            "short_description": self.short_description,
            "full_description": self.full_description or "",
            "version": self.version,
            "formats": self.formats or [],
            "methods": {
                name: method.to_json(settings, self.formats, recorded_examples.get(f"{self.name}#{name}"))
                for name, method in methods.items()
            },
        }
