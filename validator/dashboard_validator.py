import json
import logging
from pathlib import Path

from common.error_manager import DashboardValidationError, ErrorKind, ValidationError
from common.grafana_model import Dashboard, DashboardDecodeError

logger = logging.getLogger(__name__)

# Closed and case-sensitive: "Table" is not a query panel.
QUERY_PANEL_TYPES = frozenset(
    {
        "timeseries",
        "stat",
        "gauge",
        "bargauge",
        "table",
        "heatmap",
        "piechart",
        "graph",  # legacy
        "singlestat",  # legacy
    }
)


def is_query_panel(panel_type: str) -> bool:
    return panel_type in QUERY_PANEL_TYPES


def collect_errors(dashboard: Dashboard) -> list[ValidationError]:
    """Runs every rule over the dashboard and returns all violations in order.

    A schema version of 0 is treated as missing; a dashboard that really
    declares version 0 cannot be told apart from one that omits it.
    """
    errors = []

    if dashboard.title == "":
        errors.append(
            ValidationError("title", "title is required", ErrorKind.MISSING_FIELD)
        )

    if dashboard.schema_version == 0:
        errors.append(
            ValidationError(
                "schemaVersion", "schemaVersion is required", ErrorKind.MISSING_FIELD
            )
        )

    if len(dashboard.panels) == 0:
        errors.append(
            ValidationError(
                "panels", "at least one panel is required", ErrorKind.EMPTY_COLLECTION
            )
        )

    panel_ids = set()
    for i, panel in enumerate(dashboard.panels):
        if panel.id in panel_ids:
            errors.append(
                ValidationError(
                    f"panels[{i}].id",
                    f"duplicate panel ID: {panel.id}",
                    ErrorKind.DUPLICATE_KEY,
                )
            )
        panel_ids.add(panel.id)

        if panel.type == "":
            errors.append(
                ValidationError(
                    f"panels[{i}].type", "panel type is required", ErrorKind.MISSING_FIELD
                )
            )

        if panel.grid_pos.w <= 0 or panel.grid_pos.h <= 0:
            errors.append(
                ValidationError(
                    f"panels[{i}].gridPos",
                    "panel width and height must be positive",
                    ErrorKind.INVALID_VALUE,
                )
            )

        if is_query_panel(panel.type) and len(panel.targets) == 0:
            errors.append(
                ValidationError(
                    f"panels[{i}].targets",
                    "query panels must have at least one target",
                    ErrorKind.MISSING_FIELD,
                )
            )

        for j, target in enumerate(panel.targets):
            if target.ref_id == "":
                errors.append(
                    ValidationError(
                        f"panels[{i}].targets[{j}].refId",
                        "target refId is required",
                        ErrorKind.MISSING_FIELD,
                    )
                )

    var_names = set()
    for i, variable in enumerate(dashboard.variables):
        if variable.name == "":
            errors.append(
                ValidationError(
                    f"templating.list[{i}].name",
                    "variable name is required",
                    ErrorKind.MISSING_FIELD,
                )
            )

        if variable.name in var_names:
            errors.append(
                ValidationError(
                    f"templating.list[{i}].name",
                    f"duplicate variable name: {variable.name}",
                    ErrorKind.DUPLICATE_KEY,
                )
            )
        var_names.add(variable.name)

        if variable.type == "":
            errors.append(
                ValidationError(
                    f"templating.list[{i}].type",
                    "variable type is required",
                    ErrorKind.MISSING_FIELD,
                )
            )

    return errors


def validate(dashboard: Dashboard) -> None:
    errors = collect_errors(dashboard)
    if errors:
        raise DashboardValidationError(errors)


def validate_file(path) -> Dashboard:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise DashboardDecodeError(f"failed to read file: {e}") from e

    try:
        document = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as e:
        raise DashboardDecodeError(f"invalid JSON: {e}") from e

    try:
        dashboard = Dashboard.from_json(document)
    except DashboardDecodeError as e:
        raise DashboardDecodeError(f"invalid JSON: {e}") from e

    validate(dashboard)
    logger.debug(f"Dashboard {dashboard.title} passed validation: {path}")
    return dashboard


def dashboard_metadata(dashboard: Dashboard) -> dict:
    return {
        "title": dashboard.title,
        "description": dashboard.description,
        "id": dashboard.id,
        "uid": dashboard.uid,
        "tags": list(dashboard.tags),
        "panels_count": len(dashboard.panels),
        "schema_version": dashboard.schema_version,
        "has_templating": len(dashboard.variables) > 0,
    }


def process_template_variables(content: str, replacements: dict) -> str:
    result = content
    for variable, replacement in replacements.items():
        result = result.replace(f"${{{variable}}}", replacement)
        result = result.replace(f"${variable}", replacement)
    return result
