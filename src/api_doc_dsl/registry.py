"""The documentation registry.

Holds every ``ResourceDescription`` by version and resource name, the
per-controller resource id overrides and declared versions, and assembles
the documentation tree for export.
"""

import logging
import threading
from collections.abc import Iterable
from pathlib import Path

from api_doc_dsl.config import Settings
from api_doc_dsl.description import MethodDescription, ResourceDescription
from api_doc_dsl.discovery import controller_paths, load_controller_from_file
from api_doc_dsl.errors import ConfigurationError, UnresolvableReferenceError
from api_doc_dsl.examples import ExampleCache
from api_doc_dsl.identity import (
    BASE_CONTROLLER,
    ControllerId,
    ancestry,
    parse_method_ref,
    parse_resource_ref,
)
from api_doc_dsl.staging import StagedDeclaration

logger = logging.getLogger(__name__)


class Registry:
    def __init__(self, settings: Settings | None = None):
        self.settings = settings or Settings()
        self.examples = ExampleCache(self.settings.examples_file)
        # Guards reset + repopulation against concurrent readers.
        self.lock = threading.RLock()
        self.init_env()

    def configure(self, settings: Settings) -> None:
        self.settings = settings
        self.examples = ExampleCache(settings.examples_file)

    def init_env(self) -> None:
        self.resource_descriptions: dict[str, dict[str, ResourceDescription]] = {}
        self.controller_resource_id: dict[ControllerId, str] = {}
        self.controller_versions_map: dict[ControllerId, list[str]] = {}

    def reset(self) -> None:
        """Forget every registration."""
        with self.lock:
            self.init_env()

    def available_versions(self) -> list[str]:
        return sorted(self.resource_descriptions)

    def set_resource_id(self, controller: ControllerId, resource_id: str) -> None:
        self.controller_resource_id[controller] = resource_id

    def set_controller_versions(self, controller: ControllerId, versions: Iterable[str]) -> None:
        self.controller_versions_map[controller] = list(versions)

    def controller_versions(self, controller: ControllerId) -> list[str]:
        """Versions declared by the controller, else by its nearest declaring ancestor.

        Falls back to the default version once the root is reached.
        """
        for current in ancestry(controller):
            versions = self.controller_versions_map.get(current)
            if versions:
                return list(versions)
        return [self.settings.default_version]

    def resource_name(self, controller: ControllerId | str) -> str | None:
        if isinstance(controller, str):
            return controller
        if controller in self.controller_resource_id:
            return self.controller_resource_id[controller]
        if controller == BASE_CONTROLLER:
            return None
        if controller.controller_name:
            return controller.controller_name
        raise ConfigurationError(f"Can not resolve resource {controller} name.")

    def ignored(self, controller: ControllerId, method_name: str | None = None) -> bool:
        ignored = self.settings.ignored
        if controller.name in ignored:
            return True
        return method_name is not None and f"{controller.name}#{method_name}" in ignored

    def active_dsl(self) -> bool:
        """Whether declarations need interpreting at all in this run."""
        s = self.settings
        return s.validate_params or not s.use_cache or s.force_dsl

    def _require_resource_name(self, controller: ControllerId) -> str:
        name = self.resource_name(controller)
        if name is None:
            raise ConfigurationError(f"{controller} has no resource name and can not be documented.")
        return name

    def define_resource_description(
        self,
        controller: ControllerId,
        version: str,
        short_description: str | None = None,
        full_description: str | None = None,
        formats: list[str] | None = None,
    ) -> ResourceDescription | None:
        """Create the resource for (version, controller), or update its descriptions."""
        if self.ignored(controller):
            return None
        name = self._require_resource_name(controller)
        resources = self.resource_descriptions.setdefault(version, {})
        resource = resources.get(name)
        if resource is None:
            resource = ResourceDescription(controller=controller, name=name, version=version)
            resources[name] = resource
            logger.debug("resource_descriptions[%s][%s] = %s", version, name, controller)
        if short_description is not None:
            resource.short_description = short_description
        if full_description is not None:
            resource.full_description = full_description
        if formats is not None:
            resource.formats = list(formats)
        return resource

    def define_method_description(
        self,
        controller: ControllerId,
        method_name: str,
        staged: StagedDeclaration,
        versions: Iterable[str] = (),
    ) -> MethodDescription | None:
        """Commit a staged declaration for every applicable version.

        Any previous description of the method is replaced. The first
        description built is returned.
        """
        if self.ignored(controller, method_name):
            return None
        versions = list(versions) or list(staged.versions) or self.controller_versions(controller)
        name = self._require_resource_name(controller)
        first = None
        for version in versions:
            resource = self.resource_descriptions.get(version, {}).get(name)
            if resource is None:
                resource = self.define_resource_description(controller, version)
            resource.remove_method_description(method_name)
            method = MethodDescription(
                name=method_name,
                resource_name=name,
                version=version,
                endpoints=staged.endpoints,
                description=staged.description,
                params=staged.params,
                errors=staged.errors,
                examples=staged.examples,
                see=staged.see,
                formats=staged.formats,
            )
            resource.add_method_description(method)
            logger.debug("Registered %s", method.reference)
            if first is None:
                first = method
        return first

    def remove_method_description(self, controller: ControllerId | str, versions: Iterable[str], method_name: str) -> None:
        name = self.resource_name(controller)
        for version in versions:
            resource = self.resource_descriptions.get(version, {}).get(name)
            if resource is not None:
                resource.remove_method_description(method_name)

    def get_resource_description(self, resource, version: str | None = None) -> ResourceDescription | None:
        """Look up a resource.

        ``resource`` is a string reference ("users", "v2#users"), a
        ``ControllerId`` or a controller class. Unknown resources give None.
        """
        if isinstance(resource, str):
            ref = parse_resource_ref(resource, version or self.settings.default_version)
            if ref is None:
                return None
            return self.resource_descriptions.get(ref.version, {}).get(ref.resource)
        controller = self._controller_id(resource)
        if controller == BASE_CONTROLLER:
            return None
        name = self.resource_name(controller)
        version = version or self.settings.default_version
        return self.resource_descriptions.get(version, {}).get(name)

    def get_method_description(self, resource, method_name: str | None = None) -> MethodDescription | None:
        """Look up a method.

        Either ``("v1#users", "show")``, ``(UsersController, "show")`` or a
        single method reference such as ``"users#show"`` or ``"v1#users#show"``.
        """
        if isinstance(resource, str) and method_name is None:
            ref = parse_method_ref(resource, self.settings.default_version)
            if ref is None:
                return None
            resource_description = self.get_resource_description(str(ref.resource_ref))
            method_name = ref.method
        else:
            resource_description = self.get_resource_description(resource)
        if resource_description is None:
            return None
        return resource_description.methods.get(method_name)

    __getitem__ = get_method_description

    @staticmethod
    def _controller_id(resource) -> ControllerId:
        if isinstance(resource, ControllerId):
            return resource
        identity = getattr(resource, "api_identity", None)
        if isinstance(identity, ControllerId):
            return identity
        raise UnresolvableReferenceError(f"Resource {resource!r} does not exist.")

    def recorded_examples(self) -> dict[str, list[dict]]:
        return self.examples.records()

    def reload_examples(self) -> None:
        self.examples.reload()

    def api_controllers_paths(self) -> list[Path]:
        if not self.settings.api_controllers_matcher:
            return []
        return controller_paths(self.settings.api_controllers_matcher)

    def reload_documentation(self, paths: Iterable[Path] | None = None) -> None:
        """Rebuild everything from the controller sources."""
        with self.lock:
            paths = list(paths) if paths is not None else self.api_controllers_paths()
            logger.info("Reloading documentation from %d controller files", len(paths))
            self.init_env()
            self.reload_examples()
            # Controllers that are imported rather than loaded from the
            # matched files would otherwise lose their class-level options.
            from api_doc_dsl.dsl import replay_controllers
            replay_controllers(self)
            for path in paths:
                load_controller_from_file(Path(path))

    def to_document_tree(
        self,
        version: str,
        resource_name: str | None = None,
        method_name: str | None = None,
    ) -> dict | None:
        """Assemble the documentation tree for one version.

        Without a resource name every resource that has methods is included.
        With one, the resources collection holds just that resource, and None
        is returned when it does not exist.
        """
        with self.lock:
            resources_in_version = self.resource_descriptions.get(version, {})
            recorded = self.examples.formatted()
            if resource_name is None:
                resources = {
                    name: resource.to_json(self.settings, recorded_examples=recorded)
                    for name, resource in resources_in_version.items()
                    if resource.methods
                }
            else:
                resource = resources_in_version.get(resource_name)
                if resource is None:
                    return None
                resources = [resource.to_json(self.settings, method_name, recorded)]

        s = self.settings
        return {
            "docs": {
                "name": s.app_name,
                "info": s.app_info_for(version),
                "copyright": s.copyright,
                "doc_url": s.full_url(version if s.version_in_url else ""),
                "api_url": s.api_base_url_for(version),
                "resources": resources,
            }
        }


app = Registry()
