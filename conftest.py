import json

import pytest

VALUES_YAML = """\
namespace: rhoai-observability
grafanaFolder: RHOAI
dashboard_folders:
  - serving
  - platform
instanceSelector:
  matchLabels:
    dashboards: grafana
grafanaOperator:
  enabled: true
  apiVersion: grafana.integreatly.org/v1beta1
"""

CHART_YAML = """\
apiVersion: v2
name: grafana-dashboards
version: 0.1.0
"""


def dashboard_document(title="CPU Usage", panel_id=1):
    return {
        "title": title,
        "schemaVersion": 39,
        "panels": [
            {
                "id": panel_id,
                "type": "timeseries",
                "gridPos": {"w": 12, "h": 8, "x": 0, "y": 0},
                "targets": [{"refId": "A", "expr": "up"}],
            }
        ],
    }


@pytest.fixture
def chart(tmp_path):
    """A chart with two dashboard folders holding three valid dashboards."""
    root = tmp_path / "chart"
    (root / "templates").mkdir(parents=True)
    (root / "Chart.yaml").write_text(CHART_YAML)
    (root / "values.yaml").write_text(VALUES_YAML)

    serving = root / "dashboards" / "serving"
    (serving / "nested").mkdir(parents=True)
    (serving / "models.json").write_text(json.dumps(dashboard_document("Models")))
    (serving / "nested" / "latency.json").write_text(
        json.dumps(dashboard_document("Latency"))
    )
    (serving / "README.md").write_text("not a dashboard")

    platform = root / "dashboards" / "platform"
    platform.mkdir(parents=True)
    (platform / "cluster.json").write_text(json.dumps(dashboard_document("Cluster")))
    return root
