import enum
import typing as ty

from pydantic import BaseModel

from issuetracker.models import Issue


class CreateStatus(enum.Enum):
    created = "created"
    missing_required_fields = "missing_required_fields"


class UpdateStatus(enum.Enum):
    success = "success"
    missing_id = "missing_id"
    no_fields_provided = "no_fields_provided"
    not_found = "not_found"


class DeleteStatus(enum.Enum):
    success = "success"
    missing_id = "missing_id"
    not_found = "not_found"


class CreateOutcome(BaseModel):
    status: CreateStatus
    issue: ty.Optional[Issue] = None
    missing: ty.List[str] = []


class UpdateOutcome(BaseModel):
    status: UpdateStatus
    uuid: ty.Optional[str] = None


class DeleteOutcome(BaseModel):
    status: DeleteStatus
    uuid: ty.Optional[str] = None
