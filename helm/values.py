from pathlib import Path
from typing import Annotated

import yaml
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from common.error_manager import ChartError
from common.grafana_model import decode_error, or_zero

DASHBOARDS_DIR = "dashboards"
VALUES_FILE = "values.yaml"
CHART_FILE = "Chart.yaml"
REQUIRED_CHART_ENTRIES = ("Chart.yaml", "values.yaml", "templates")


def _scalar_text(value):
    # YAML scalars such as `version: 1.6` land in string fields as text
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    return value


Text = Annotated[str, BeforeValidator(_scalar_text)]
Labels = Annotated[dict[Text, Text], or_zero(dict)]
TextList = Annotated[list[Text], or_zero(list)]
Flag = Annotated[bool, or_zero(bool)]


class ValuesModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Plugin(ValuesModel):
    name: Text = ""
    version: Text = ""


class InstanceSelector(ValuesModel):
    match_labels: Labels = Field(default_factory=dict, alias="matchLabels")


class Templating(ValuesModel):
    enabled: Flag = False


class DashboardConfig(ValuesModel):
    refresh: Text = ""
    time_from: Text = Field(default="", alias="timeFrom")
    templating: Annotated[Templating, or_zero(Templating)] = Templating()
    tags: TextList = Field(default_factory=list)


class ResourceSpec(ValuesModel):
    cpu: Text = ""
    memory: Text = ""


class Resources(ValuesModel):
    limits: Annotated[ResourceSpec, or_zero(ResourceSpec)] = ResourceSpec()
    requests: Annotated[ResourceSpec, or_zero(ResourceSpec)] = ResourceSpec()


class RBAC(ValuesModel):
    create: Flag = False
    service_account_name: Text = Field(default="", alias="serviceAccountName")


class GrafanaOperator(ValuesModel):
    enabled: Flag = False
    api_version: Text = Field(default="", alias="apiVersion")


class Values(ValuesModel):
    namespace: Text = ""
    common_labels: Labels = Field(default_factory=dict, alias="commonLabels")
    common_annotations: Labels = Field(default_factory=dict, alias="commonAnnotations")
    grafana_folder: Text = Field(default="", alias="grafanaFolder")
    dashboard_folders: TextList = Field(default_factory=list)
    dashboard_namespace: Text = Field(default="", alias="dashboardNamespace")
    plugins: Annotated[list[Plugin], or_zero(list)] = Field(default_factory=list)
    instance_selector: Annotated[InstanceSelector, or_zero(InstanceSelector)] = Field(
        default=InstanceSelector(), alias="instanceSelector"
    )
    dashboard: Annotated[DashboardConfig, or_zero(DashboardConfig)] = DashboardConfig()
    resources: Annotated[Resources, or_zero(Resources)] = Resources()
    rbac: Annotated[RBAC, or_zero(RBAC)] = RBAC()
    grafana_operator: Annotated[GrafanaOperator, or_zero(GrafanaOperator)] = Field(
        default=GrafanaOperator(), alias="grafanaOperator"
    )

    @classmethod
    def from_dict(cls, data):
        if data is None:
            return cls()
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ChartError(
                f"failed to parse values file: {decode_error(e, 'values')}"
            ) from e


def load_values(values_path) -> Values:
    try:
        with open(values_path, "r") as stream:
            data = yaml.safe_load(stream)
    except OSError as e:
        raise ChartError(f"failed to read values file: {e}") from e
    except yaml.YAMLError as e:
        raise ChartError(f"failed to parse values file: {e}") from e
    return Values.from_dict(data)


def validate_chart(chart_path) -> None:
    chart_path = Path(chart_path)
    for entry in REQUIRED_CHART_ENTRIES:
        if not (chart_path / entry).exists():
            raise ChartError(f"required file/directory missing: {entry}")

    try:
        with open(chart_path / CHART_FILE, "r") as stream:
            chart = yaml.safe_load(stream)
    except OSError as e:
        raise ChartError(f"failed to read Chart.yaml: {e}") from e
    except yaml.YAMLError as e:
        raise ChartError(f"invalid Chart.yaml: {e}") from e

    if not isinstance(chart, dict):
        raise ChartError("invalid Chart.yaml: top level must be a mapping")
    if not all(chart.get(key) for key in ("apiVersion", "name", "version")):
        raise ChartError("Chart.yaml missing required fields")

    try:
        load_values(chart_path / VALUES_FILE)
    except ChartError as e:
        raise ChartError(f"invalid values.yaml: {e}") from e
