import datetime as dt
import logging
import typing as ty
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
)

REQUIRED_FIELDS = ("issue_title", "issue_text", "created_by")

_bool_adapter = TypeAdapter(bool)


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Issue(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    uuid: str = Field(default_factory=lambda: str(uuid4()), alias="_id")
    project: str

    issue_title: str
    issue_text: str
    created_by: str
    assigned_to: str = ""
    status_text: str = ""

    open: bool = True

    created_on: dt.datetime
    updated_on: dt.datetime


class IssueCreateRequest(BaseModel):
    """Fields a client may set when opening an issue.

    System fields (`_id`, `open`, timestamps, `project`) are not declared and
    are dropped if a client sends them.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    issue_title: str = ""
    issue_text: str = ""
    created_by: str = ""
    assigned_to: str = ""
    status_text: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def null_is_empty(cls, value: ty.Any) -> ty.Any:
        return "" if value is None else value

    def missing_fields(self) -> ty.List[str]:
        return [name for name in REQUIRED_FIELDS if not getattr(self, name).strip()]


class IssueUpdateRequest(BaseModel):
    model_config = ConfigDict(
        extra="ignore", populate_by_name=True, coerce_numbers_to_str=True
    )

    uuid: ty.Optional[str] = Field(None, alias="_id")

    issue_title: ty.Optional[str] = None
    issue_text: ty.Optional[str] = None
    created_by: ty.Optional[str] = None
    assigned_to: ty.Optional[str] = None
    status_text: ty.Optional[str] = None
    open: ty.Optional[bool] = None

    @field_validator("uuid", mode="before")
    @classmethod
    def blank_uuid_is_missing(cls, value: ty.Any) -> ty.Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("open", mode="before")
    @classmethod
    def coerce_open(cls, value: ty.Any) -> ty.Optional[bool]:
        if value is None or value == "":
            return None
        try:
            return _bool_adapter.validate_python(value)
        except ValidationError:
            logging.warning(f"Ignoring open={value!r}: not a boolean")
            return None

    def changes(self) -> ty.Dict[str, ty.Any]:
        """Fields carrying a value, i.e. the ones to overwrite on the issue."""
        return {
            name: value
            for name, value in self.model_dump(exclude={"uuid"}).items()
            if value is not None and value != ""
        }


class IssueFilter(BaseModel):
    """Exact-match constraints for listing issues.

    Known fields are coerced to the type they have on `Issue`, so `open=false`
    matches the boolean. Anything else lands in `model_extra` and is matched
    verbatim against the stored document.
    """

    model_config = ConfigDict(extra="allow")

    uuid: ty.Optional[str] = Field(None, alias="_id")
    project: ty.Optional[str] = None

    issue_title: ty.Optional[str] = None
    issue_text: ty.Optional[str] = None
    created_by: ty.Optional[str] = None
    assigned_to: ty.Optional[str] = None
    status_text: ty.Optional[str] = None

    open: ty.Optional[bool] = None

    created_on: ty.Optional[dt.datetime] = None
    updated_on: ty.Optional[dt.datetime] = None
