import pytest

from api_doc_dsl.dsl import Controller, Interceptor, STAGING_ATTR, api, desc, error, example, param, see
from api_doc_dsl.errors import DuplicateDeclarationError, MissingParameterError, TypeMismatchError, ValidationError
from api_doc_dsl.params import TypeValidator
from api_doc_dsl.registry import Registry


class TestShowScenario:
    def test_declare_commit_and_validate(self, registry):
        class UsersController(Controller, registry=registry, versions=["v1"]):
            @api("GET", "/users/:id").desc("show a user").param("id", int, required=True)
            def show(self):
                return {"id": self.params["id"]}

        method = registry.get_method_description("v1#users#show")
        assert len(method.endpoints) == 1
        assert method.endpoints[0].path == "/users/:id"
        assert method.description == "show a user"
        assert list(method.params) == ["id"]
        assert method.params["id"].required is True
        assert method.params["id"].validator == TypeValidator(expected=int)

        with pytest.raises(MissingParameterError):
            UsersController({}).show()
        with pytest.raises(TypeMismatchError):
            UsersController({"id": "abc"}).show()
        assert UsersController({"id": 5}).show() == {"id": 5}

    def test_wrapper_exposes_description(self, registry):
        class UsersController(Controller, registry=registry):
            @api("GET", "/users")
            def index(self):
                return []

        assert UsersController.index.api_method is registry.get_method_description("v1#users#index")
        assert UsersController.index.__name__ == "index"
        assert not hasattr(UsersController.index, STAGING_ATTR)


class TestDeclarationBuilders:
    def test_stacked_decorators_keep_source_order(self, registry):
        class UsersController(Controller, registry=registry):
            @api("GET", "/users")
            @param("first", int)
            @param("second", str)
            @error(404, "Not found")
            @example("GET /users")
            @see("users#show")
            def index(self):
                return []

        method = registry.get_method_description("users#index")
        assert list(method.params) == ["first", "second"]
        assert method.errors[0].code == 404
        assert method.examples == ["GET /users"]
        assert method.see == "users#show"

    def test_double_description(self):
        with pytest.raises(DuplicateDeclarationError):
            desc("one").desc("two")

    def test_double_description_across_decorators(self, registry):
        with pytest.raises(DuplicateDeclarationError):
            class UsersController(Controller, registry=registry):
                @desc("one")
                @desc("two")
                def index(self):
                    pass

    def test_undocumented_methods_are_left_alone(self, registry):
        class UsersController(Controller, registry=registry):
            def helper(self):
                return "plain"

        assert UsersController({}).helper() == "plain"
        assert registry.available_versions() == []

    def test_nested_param(self, registry):
        class UsersController(Controller, registry=registry):
            @api("POST", "/users").param(
                "user", dict, required=True,
                nested=lambda p: p.param("name", str, required=True).param("age", int),
            )
            def create(self):
                return "created"

        assert UsersController({"user": {"name": "Ann", "age": 3}}).create() == "created"
        with pytest.raises(MissingParameterError) as exc:
            UsersController({"user": {"age": 3}}).create()
        assert exc.value.param == "user[name]"


class TestControllerOptions:
    def test_versions_inherited_from_parent_controller(self, registry):
        class ApiController(Controller, registry=registry, versions=["v2"]):
            pass

        class PetsController(ApiController):
            @api("GET", "/pets")
            def index(self):
                return []

        assert registry.controller_versions(PetsController.api_identity) == ["v2"]
        assert PetsController.api_identity.parent == ApiController.api_identity
        assert registry.get_method_description("v2#pets#index") is not None
        assert registry.to_document_tree("v2")["docs"]["resources"].keys() == {"pets"}

    def test_method_versions(self, registry):
        class UsersController(Controller, registry=registry):
            @api("GET", "/users").api_versions("v1", "v2").param("page", int)
            def index(self):
                return []

        assert registry.available_versions() == ["v1", "v2"]
        assert UsersController.index.api_method.version == "v1"
        with pytest.raises(TypeMismatchError):
            UsersController({"page": "x"}).index()

    def test_resource_id_and_descriptions(self, registry):
        class UsersController(Controller, registry=registry, resource_id="people",
                              short="People", description="Everyone", formats=["json"]):
            @api("GET", "/people")
            def index(self):
                return []

        resource = registry.get_resource_description("v1#people")
        assert resource.short_description == "People"
        assert resource.full_description == "Everyone"
        assert list(resource.methods) == ["index"]

    def test_controller_name_attribute(self, registry):
        class AccountController(Controller, registry=registry):
            controller_name = "accounts"

            @api("GET", "/accounts")
            def index(self):
                return []

        assert registry.get_method_description("v1#accounts#index") is not None

    def test_redefined_controller_replaces_method(self, registry):
        class UsersController(Controller, registry=registry):
            @api("GET", "/users").desc("old").param("page", int)
            def index(self):
                return []

        class UsersController(Controller, registry=registry):  # noqa: F811
            @api("GET", "/users").desc("new")
            def index(self):
                return []

        method = registry.get_method_description("v1#users#index")
        assert method.description == "new"
        assert method.params == {}


class TestIgnoredAndDisabled:
    def test_ignored_method_is_not_registered_or_wrapped(self, settings):
        registry = Registry(settings.model_copy(update={"ignored": {"UsersController#secret"}}))

        class UsersController(Controller, registry=registry):
            @api("GET", "/secret").param("token", str, required=True)
            def secret(self):
                return "ok"

            @api("GET", "/users")
            def index(self):
                return []

        assert registry.get_method_description("v1#users#secret") is None
        assert registry.get_method_description("v1#users#index") is not None
        assert UsersController({}).secret() == "ok"

    def test_validation_disabled_keeps_original(self, settings):
        registry = Registry(settings.model_copy(update={"validate_params": False}))

        class UsersController(Controller, registry=registry):
            @api("GET", "/users/:id").param("id", int, required=True)
            def show(self):
                return "shown"

        assert registry.get_method_description("v1#users#show") is not None
        assert UsersController({}).show() == "shown"

    def test_inactive_dsl_registers_nothing(self, settings):
        registry = Registry(settings.model_copy(update={"validate_params": False, "use_cache": True}))

        class UsersController(Controller, registry=registry):
            @api("GET", "/users")
            def index(self):
                return []

        assert registry.available_versions() == []


class TestInterceptor:
    def test_buffer_consumed_even_when_ignored(self, settings):
        registry = Registry(settings.model_copy(update={"ignored": {"UsersController"}}))

        class UsersController(Controller, registry=registry):
            pass

        def handler(self):
            return None

        api("GET", "/users").desc("list")(handler)
        staging = getattr(handler, STAGING_ATTR)
        assert Interceptor(registry).method_defined(UsersController, "index", handler, staging) is None
        assert staging.is_empty()
        assert not hasattr(handler, STAGING_ATTR)


class TestSharedBuilder:
    def test_one_builder_on_two_handlers(self, registry):
        paged = api("GET", "/users").param("page", int)

        class UsersController(Controller, registry=registry, versions=["v1"]):
            @paged
            def index(self):
                return "index"

            @paged
            def search(self):
                return "search"

        assert list(registry.get_method_description("v1#users#index").params) == ["page"]
        assert list(registry.get_method_description("v1#users#search").params) == ["page"]
        with pytest.raises(TypeMismatchError):
            UsersController({"page": "x"}).search()
        assert UsersController({"page": "2"}).search() == "search"
        assert not paged.staging.is_empty()


class TestWrapperErrors:
    def test_raising_predicate_rejected_by_wrapper(self, registry):
        class UsersController(Controller, registry=registry, versions=["v1"]):
            @api("GET", "/users").param("age", lambda v: int(v) >= 0)
            def index(self):
                return "index"

        with pytest.raises(ValidationError) as exc:
            UsersController({"age": "abc"}).index()
        assert exc.value.status_code == 400
        assert UsersController({"age": "7"}).index() == "index"
