import typing as ty

import fastapi as fa
from fastapi.encoders import jsonable_encoder as to_json
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from issuetracker.outcomes import (
    CreateOutcome,
    CreateStatus,
    DeleteOutcome,
    DeleteStatus,
    UpdateOutcome,
    UpdateStatus,
)


class ResultContent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    result: str
    uuid: str = Field(alias="_id")


class IssueErrorContent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    error: str
    uuid: ty.Optional[str] = Field(None, alias="_id")


UPDATE_RESPONSES: ty.Dict[UpdateStatus, ty.Tuple[str, int]] = {
    UpdateStatus.success: ("successfully updated", fa.status.HTTP_200_OK),
    UpdateStatus.missing_id: ("missing _id", fa.status.HTTP_400_BAD_REQUEST),
    UpdateStatus.no_fields_provided: (
        "no update field(s) sent",
        fa.status.HTTP_400_BAD_REQUEST,
    ),
    UpdateStatus.not_found: ("could not update", fa.status.HTTP_404_NOT_FOUND),
}

DELETE_RESPONSES: ty.Dict[DeleteStatus, ty.Tuple[str, int]] = {
    DeleteStatus.success: ("successfully deleted", fa.status.HTTP_200_OK),
    DeleteStatus.missing_id: ("missing _id", fa.status.HTTP_400_BAD_REQUEST),
    DeleteStatus.not_found: ("could not delete", fa.status.HTTP_404_NOT_FOUND),
}


def _render(message: str, status_code: int, uuid: ty.Optional[str]) -> JSONResponse:
    content: BaseModel
    if status_code == fa.status.HTTP_200_OK:
        content = ResultContent(result=message, uuid=uuid)
    else:
        content = IssueErrorContent(error=message, uuid=uuid)
    return JSONResponse(
        content=to_json(content, exclude_none=True), status_code=status_code
    )


def create_response(outcome: CreateOutcome) -> JSONResponse:
    if outcome.status == CreateStatus.missing_required_fields:
        return _render(
            "required field(s) missing", fa.status.HTTP_400_BAD_REQUEST, None
        )
    return JSONResponse(
        content=to_json(outcome.issue), status_code=fa.status.HTTP_200_OK
    )


def update_response(outcome: UpdateOutcome) -> JSONResponse:
    message, status_code = UPDATE_RESPONSES[outcome.status]
    return _render(message, status_code, outcome.uuid)


def delete_response(outcome: DeleteOutcome) -> JSONResponse:
    message, status_code = DELETE_RESPONSES[outcome.status]
    return _render(message, status_code, outcome.uuid)
