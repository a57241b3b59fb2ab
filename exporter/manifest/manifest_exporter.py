import json
import logging

import yaml

from helm.values import Values

from ..exporter import Exporter

OUTPUT_FORMATS = ("yaml", "json")


class ManifestExporter(Exporter):
    def __init__(self, values: Values, namespace, log_level=logging.INFO):
        super().__init__(__name__, log_level)
        self._values = values
        self._namespace = namespace

    def dashboard_manifest(self, dashboard) -> dict:
        return {
            "apiVersion": self._values.grafana_operator.api_version,
            "kind": "GrafanaDashboard",
            "metadata": {
                "name": f"dashboard-{dashboard.stem}",
                "namespace": self._namespace,
                "labels": {
                    "app.kubernetes.io/name": "grafana-dashboards",
                    "grafana-dashboard": "true",
                    "dashboard-folder": dashboard.folder,
                },
            },
            "spec": {
                "name": dashboard.stem,
                "folder": self._values.grafana_folder,
                "instanceSelector": self._values.instance_selector.model_dump(
                    by_alias=True
                ),
            },
        }

    def export_dashboards(self, dashboards) -> dict:
        items = [self.dashboard_manifest(dashboard) for dashboard in dashboards]
        self._logger.debug(
            f"Built {len(items)} GrafanaDashboard manifests for namespace {self._namespace}"
        )
        return {"apiVersion": "v1", "kind": "List", "items": items}


def encode_manifest(manifest: dict, output_format: str) -> str:
    match output_format:
        case "json":
            return json.dumps(manifest, indent=2) + "\n"
        case "yaml":
            return yaml.safe_dump(
                manifest, indent=2, sort_keys=False, default_flow_style=False
            )
        case _:
            raise ValueError(f"unsupported output format: {output_format}")
