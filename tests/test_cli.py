import json
from pathlib import Path

from click.testing import CliRunner

from api_doc_dsl.cli import main

FIXTURES = Path(__file__).parent / "fixtures"
CONTROLLERS = str(FIXTURES / "controllers" / "*_controller.py")
SETTINGS = str(FIXTURES / "settings.yaml")


class TestCliExport:
    def test_export_to_file(self, default_app, tmp_path):
        output = tmp_path / "docs" / "v1.json"
        runner = CliRunner()
        result = runner.invoke(main, [
            "export", "-c", SETTINGS, "--controllers", CONTROLLERS, "-o", str(output),
        ])

        assert result.exit_code == 0, result.output
        docs = json.loads(output.read_text())["docs"]
        assert docs["name"] == "Pet Store"
        assert set(docs["resources"]) == {"pets", "users"}
        assert "destroy" not in docs["resources"]["pets"]["methods"]

    def test_export_single_method_to_stdout(self, default_app):
        runner = CliRunner()
        result = runner.invoke(main, [
            "export", "-c", SETTINGS, "--controllers", CONTROLLERS,
            "--resource", "users", "--method", "show",
        ])

        assert result.exit_code == 0, result.output
        resources = json.loads(result.output)["docs"]["resources"]
        assert list(resources[0]["methods"]) == ["show"]

    def test_unknown_resource(self, default_app):
        runner = CliRunner()
        result = runner.invoke(main, [
            "export", "-c", SETTINGS, "--controllers", CONTROLLERS, "--resource", "ghosts",
        ])
        assert result.exit_code != 0
        assert "ghosts" in result.output

    def test_method_requires_resource(self, default_app):
        runner = CliRunner()
        result = runner.invoke(main, ["export", "--method", "show"])
        assert result.exit_code == 2


class TestCliVersions:
    def test_lists_versions(self, default_app):
        runner = CliRunner()
        result = runner.invoke(main, ["versions", "-c", SETTINGS, "--controllers", CONTROLLERS])
        assert result.exit_code == 0
        assert result.output.split() == ["v1"]


class TestCliListControllers:
    def test_lists_in_load_order(self):
        runner = CliRunner()
        result = runner.invoke(main, ["list-controllers", CONTROLLERS])
        assert result.exit_code == 0
        assert [Path(line).name for line in result.output.splitlines()] == [
            "pets_controller.py", "users_controller.py",
        ]
