import json
from typing import Annotated, Any

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictInt,
    StrictStr,
    ValidationError,
)


class DashboardDecodeError(ValueError):
    pass


def or_zero(zero):
    """null decodes to the field's zero value, same as an absent key."""
    return BeforeValidator(lambda value: zero() if value is None else value)


def error_path(loc) -> str:
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def decode_error(e: ValidationError, root: str) -> str:
    first = e.errors()[0]
    return f"cannot decode {error_path(first['loc']) or root}: {first['msg']}"


def _query_text(value):
    # datasource and query variables may carry an object instead of a string
    if value is None or isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True)


Str = Annotated[StrictStr, or_zero(str)]
Int = Annotated[StrictInt, or_zero(int)]


class GrafanaModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class GridPos(GrafanaModel):
    h: Int = 0
    w: Int = 0
    x: Int = 0
    y: Int = 0


class FieldDefaults(GrafanaModel):
    unit: Str = ""
    display_name: Str = Field(default="", alias="displayName")
    custom: Annotated[dict[str, Any], or_zero(dict)] = Field(default_factory=dict)


class FieldConfig(GrafanaModel):
    defaults: Annotated[FieldDefaults, or_zero(FieldDefaults)] = FieldDefaults()


class Target(GrafanaModel):
    ref_id: Str = Field(default="", alias="refId")
    expr: Str = ""
    interval_factor: Int = Field(default=0, alias="intervalFactor")
    step: Int = 0


class Panel(GrafanaModel):
    id: Int = 0
    title: Str = ""
    type: Str = ""
    targets: Annotated[tuple[Target, ...], or_zero(tuple)] = ()
    grid_pos: Annotated[GridPos, or_zero(GridPos)] = Field(
        default=GridPos(), alias="gridPos"
    )
    field_config: Annotated[FieldConfig, or_zero(FieldConfig)] = Field(
        default=FieldConfig(), alias="fieldConfig"
    )


class TemplateVariable(GrafanaModel):
    name: Str = ""
    type: Str = ""
    label: Str = ""
    query: Annotated[Str, BeforeValidator(_query_text)] = ""
    refresh: Int = 0


class Templating(GrafanaModel):
    variables: Annotated[tuple[TemplateVariable, ...], or_zero(tuple)] = Field(
        default=(), alias="list"
    )


class TimeRange(GrafanaModel):
    start: Str = Field(default="", alias="from")
    end: Str = Field(default="", alias="to")


class Dashboard(GrafanaModel):
    """Decoded Grafana dashboard document.

    Absent or null fields decode to their zero value, so an empty title and a
    schema version of 0 both read as "not set" to the validator.
    """

    id: Any = None
    uid: Str = ""
    title: Str = ""
    description: Str = ""
    tags: Annotated[tuple[StrictStr, ...], or_zero(tuple)] = ()
    timezone: Str = ""
    panels: Annotated[tuple[Panel, ...], or_zero(tuple)] = ()
    time: Annotated[TimeRange, or_zero(TimeRange)] = TimeRange()
    templating: Annotated[Templating, or_zero(Templating)] = Templating()
    refresh: Any = None
    schema_version: Int = Field(default=0, alias="schemaVersion")
    version: Any = None

    @property
    def variables(self) -> tuple:
        return self.templating.variables

    @classmethod
    def from_json(cls, data):
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise DashboardDecodeError(decode_error(e, "dashboard")) from e
