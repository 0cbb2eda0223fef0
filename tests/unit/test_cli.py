"""Unit tests for the procbind command line."""

from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from procbind._serialization import encode_json
from procbind.cli import get_procbind_group


def _write_json(path: Path, data: object) -> str:
    path.write_bytes(encode_json(data, as_bytes=True))
    return str(path)


def test_plan(tmp_path: Path) -> None:
    """Test the bind plan of each parameter is printed."""
    params = _write_json(
        tmp_path / "params.json",
        {"url": "http://x", "ids": ["1", "2"], "return_outvar": {"length": 8, "type": "int", "value": None}},
    )

    result = CliRunner().invoke(get_procbind_group(), ["plan", params])

    assert result.exit_code == 0, result.output
    assert "Bind plan" in result.output
    assert ":url" in result.output
    assert "SQLT_INT" in result.output
    assert "SQLT_CHR" in result.output
    assert "(2, -1)" in result.output


def test_plan_with_config(tmp_path: Path) -> None:
    """Test configured OUT fragments and staged bind_vars are used."""
    config = _write_json(
        tmp_path / "config.json",
        {"bindings": {"out_params": ["_out"], "bind_vars": {"staged": "1"}}},
    )
    params = _write_json(tmp_path / "params.json", {"name_out": {"length": 4, "type": "num", "value": None}})

    result = CliRunner().invoke(get_procbind_group(), ["plan", params, "--config", config])

    assert result.exit_code == 0, result.output
    assert ":staged" in result.output
    assert "out_or_return" in result.output


def test_plan_invalid_parameter(tmp_path: Path) -> None:
    """Test binding errors are reported with a non-zero exit code."""
    params = _write_json(tmp_path / "params.json", {"return_outvar": "abc"})
    result = CliRunner().invoke(get_procbind_group(), ["plan", params])
    assert result.exit_code == 1
    assert "return_outvar" in result.output


def test_plan_rejects_non_object(tmp_path: Path) -> None:
    params = _write_json(tmp_path / "params.json", [1, 2])
    result = CliRunner().invoke(get_procbind_group(), ["plan", params])
    assert result.exit_code == 1
    assert "must be a JSON object" in result.output


def test_plan_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "params.json"
    path.write_text("{not json")
    result = CliRunner().invoke(get_procbind_group(), ["plan", str(path)])
    assert result.exit_code == 1


def test_classify() -> None:
    sql = "BEGIN :return_outvar := app.url_pkg.puturl(:url); END;"
    result = CliRunner().invoke(get_procbind_group(), ["classify", sql])
    assert result.exit_code == 0
    assert "PACKAGE_CALL (1)" in result.output


def test_classify_unrecognized() -> None:
    result = CliRunner().invoke(get_procbind_group(), ["classify", "DROP TABLE urls"])
    assert result.exit_code == 1
    assert "Unrecognized SQL statement" in result.output


def test_verbose_configures_logging() -> None:
    with patch("procbind.cli.configure_logging") as configure:
        result = CliRunner().invoke(get_procbind_group(), ["--verbose", "classify", "BEGIN a.b; END;"])
    assert result.exit_code == 0
    configure.assert_called_once_with(level="DEBUG", format_style="simple")
