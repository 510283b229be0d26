import json

from typer.testing import CliRunner

from cli import app

runner = CliRunner()


def test_catalog_lists_models_and_accelerators():
    result = runner.invoke(app, ["catalog"])
    assert result.exit_code == 0
    assert "Models" in result.output
    assert "Accelerators" in result.output


def test_capacity_json_output():
    result = runner.invoke(app, ["capacity", "-m", "Llama 3 8B", "-a", "NVIDIA RTX 4090", "--json"])
    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["inference"]["memoryUsagePercent"] == 114
    assert data["inference"]["feasible"] is False
    assert data["hardwareScore"] == 0


def test_capacity_unknown_model_exits_1():
    result = runner.invoke(app, ["capacity", "-m", "Mystery-13B", "-a", "NVIDIA RTX 4090"])
    assert result.exit_code == 1


def test_capacity_zero_count_exits_2():
    result = runner.invoke(app, ["capacity", "-m", "Llama 3 8B", "-a", "NVIDIA RTX 4090", "-n", "0"])
    assert result.exit_code == 2


def test_evaluate_incomplete_plan_exits_2():
    result = runner.invoke(app, ["evaluate", "-m", "Llama 3 8B", "--no-save"])
    assert result.exit_code == 2
    assert "Invalid plan" in result.output


def test_evaluate_missing_plan_file_exits_1(tmp_path):
    result = runner.invoke(app, ["evaluate", str(tmp_path / "missing.json")])
    assert result.exit_code == 1
