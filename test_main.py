import csv
import json

import pytest
import yaml

import main
from helm import renderer


@pytest.mark.parametrize(
    "size,expected",
    [
        (0, "0 B"),
        (1023, "1023 B"),
        (1024, "1.0 KB"),
        (1536, "1.5 KB"),
        (1024 * 1024, "1.0 MB"),
        (5 * 1024**3, "5.0 GB"),
    ],
)
def test_format_file_size(size, expected):
    assert main.format_file_size(size) == expected


def test_validate_valid_chart(chart, capsys):
    assert main.run(["validate", "--chart-path", str(chart), "--check-chart"]) == 0
    out = capsys.readouterr().out
    assert "OK: Valid dashboards: 3" in out
    assert "ERROR: Validation errors: 0" in out
    assert "OK: All dashboards are valid!" in out


def test_validate_reports_every_failing_file(chart, capsys, tmp_path):
    serving = chart / "dashboards" / "serving"
    (serving / "broken.json").write_text("{")
    (serving / "dupes.json").write_text(
        json.dumps(
            {
                "title": "",
                "schemaVersion": 1,
                "panels": [
                    {"id": 5, "type": "text", "gridPos": {"w": 1, "h": 1}},
                    {"id": 5, "type": "text", "gridPos": {"w": 1, "h": 1}},
                ],
            }
        )
    )
    report = tmp_path / "errors.csv"

    assert main.run(["validate", "-c", str(chart), "--errors-csv", str(report)]) == 1

    out = capsys.readouterr().out
    assert "OK: Valid dashboards: 3" in out
    assert "ERROR: Validation errors: 2" in out
    assert f"{serving / 'broken.json'}: invalid JSON: " in out
    assert (
        f"{serving / 'dupes.json'}: validation failed: title: title is required; "
        "panels[1].id: duplicate panel ID: 5"
    ) in out

    rows = list(csv.reader(report.read_text().splitlines()))
    assert rows[0] == ["File", "Field", "Kind", "Message"]
    assert [row[1:3] for row in rows[1:]] == [
        ["", "DecodeFailure"],
        ["title", "MissingField"],
        ["panels[1].id", "DuplicateKey"],
    ]


def test_validate_missing_values(tmp_path):
    assert main.run(["validate", "-c", str(tmp_path)]) == 1


def test_list(chart, capsys):
    assert main.run(["list", "--chart-path", str(chart)]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Dashboard Inventory:\n")
    assert "\nserving/\n" in out
    assert "\nplatform/\n" in out
    assert "   latency.json (" in out
    assert "   Total dashboards: 3" in out


@pytest.mark.parametrize("output_format,load", [("yaml", yaml.safe_load), ("json", json.loads)])
def test_generate(chart, capsys, output_format, load):
    assert (
        main.run(["generate", "-c", str(chart), "-o", output_format, "-n", "rhoai"]) == 0
    )
    manifest = load(capsys.readouterr().out)
    assert manifest["kind"] == "List"
    assert [item["metadata"]["name"] for item in manifest["items"]] == [
        "dashboard-models",
        "dashboard-latency",
        "dashboard-cluster",
    ]
    assert {item["metadata"]["namespace"] for item in manifest["items"]} == {"rhoai"}


def test_generate_unsupported_format(chart):
    assert main.run(["generate", "-c", str(chart), "-o", "toml"]) == 1


def test_template_uses_config(chart, capsys, tmp_path, monkeypatch):
    calls = []

    def fake_render(chart_path, values_file, release_name, namespace, helm_binary="helm"):
        calls.append((chart_path, values_file, release_name, namespace, helm_binary))
        return "rendered\n"

    monkeypatch.setattr(main, "render_templates", fake_render)
    monkeypatch.setenv("RELEASE_NAME", "rhoai-dashboards")
    config = tmp_path / "config.yml"
    config.write_text(
        f"chart_path: {chart}\nrelease: ${{RELEASE_NAME}}\nnamespace: from-config\n"
    )

    assert main.run(["-c", str(config), "template", "-n", "from-flag"]) == 0

    assert capsys.readouterr().out == "rendered\n"
    assert calls == [(str(chart), "", "rhoai-dashboards", "from-flag", "helm")]


def test_template_failure(chart, monkeypatch):
    def failing_run(cmd, **kwargs):
        raise FileNotFoundError("helm")

    monkeypatch.setattr(renderer.subprocess, "run", failing_run)
    assert main.run(["template", "-c", str(chart)]) == 1


def test_invalid_config(tmp_path):
    config = tmp_path / "config.yml"
    config.write_text("colour: blue\n")
    assert main.run(["-c", str(config), "list"]) == 1


def test_malformed_config(chart, tmp_path):
    config = tmp_path / "config.yml"
    config.write_text("chart_path: [unclosed\n")
    assert main.run(["-c", str(config), "list", "-c", str(chart)]) == 1


def test_validate_survives_deeply_nested_file(chart, capsys):
    serving = chart / "dashboards" / "serving"
    (serving / "deep.json").write_text("[" * 100000 + "]" * 100000)

    assert main.run(["validate", "-c", str(chart)]) == 1

    out = capsys.readouterr().out
    assert "OK: Valid dashboards: 3" in out
    assert "ERROR: Validation errors: 1" in out
    assert f"{serving / 'deep.json'}: invalid JSON: " in out


def test_list_does_not_follow_directory_symlinks(chart, capsys):
    (chart / "dashboards" / "platform" / "alias").symlink_to(
        chart / "dashboards" / "serving", target_is_directory=True
    )
    assert main.run(["list", "-c", str(chart)]) == 0
    out = capsys.readouterr().out
    assert "   Total dashboards: 3" in out
    assert out.count("models.json") == 1
