import json
import logging
import os
import typing as ty

import fastapi as fa
import kafka
from common import topics
from common.connectors import build_mongo_url, create_db_client, create_kafka_producer
from common.proto.common import ErrorContent, VersionContent
from fastapi.encoders import jsonable_encoder as to_json
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from issuetracker.engine import delete_issue, list_issues, update_issue
from issuetracker.models import Issue
from issuetracker.outcomes import CreateStatus, DeleteStatus, UpdateStatus
from issuetracker.serializers import (
    IssueErrorContent,
    ResultContent,
    create_response,
    delete_response,
    update_response,
)
from issuetracker.storage import create_store
from issuetracker.validation import create_issue

STORAGE = os.getenv("ISSUETRACKER_STORAGE", "mongo")

DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = os.getenv("DB_PORT", "27017")
DB_USER = os.getenv("MONGO_INITDB_ROOT_USERNAME")
DB_PASS = os.getenv("MONGO_INITDB_ROOT_PASSWORD")
DB_NAME = os.getenv("DB_DATABASE", "issuetracker")

KAFKA_PORT = os.getenv("KAFKA_PORT", "9092")
KAFKA_SERVER = os.getenv("KAFKA_SERVER")

VERSION = os.getenv("VERSION", "0.1.0")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

app = fa.FastAPI(title=str(__package__), version=VERSION)


class MalformedPayload(Exception):
    """
    Raised when a request body can't be read as a flat map of fields
    """

    pass


@app.on_event("startup")
def startup() -> ty.Any:
    logging.basicConfig(level=LOG_LEVEL)

    app.client = None
    if STORAGE == "mongo":
        app.client = create_db_client(
            build_mongo_url(DB_HOST, DB_PORT, DB_USER, DB_PASS)
        )
        app.store = create_store(STORAGE, app.client[DB_NAME])
    else:
        app.store = create_store(STORAGE)

    app.kafka_producer = None
    if KAFKA_SERVER:
        app.kafka_producer = create_kafka_producer(f"{KAFKA_SERVER}:{KAFKA_PORT}")
    else:
        logging.info("KAFKA_SERVER is not set, issue events are disabled")


@app.on_event("shutdown")
def shutdown() -> None:
    if app.client is not None:
        app.client.close()
    if app.kafka_producer is not None:
        app.kafka_producer.flush()


@app.exception_handler(MalformedPayload)
@app.exception_handler(ValidationError)
async def invalid_fields_handler(request: fa.Request, exc: Exception) -> JSONResponse:
    logging.info(f"Rejected {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        content=to_json(ErrorContent(error="invalid field(s)")),
        status_code=fa.status.HTTP_400_BAD_REQUEST,
    )


@app.exception_handler(PyMongoError)
async def storage_error_handler(request: fa.Request, exc: PyMongoError) -> JSONResponse:
    logging.exception(exc)
    return JSONResponse(
        content=to_json(ErrorContent(error="internal error")),
        status_code=fa.status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


@app.get(
    "/",
    summary="Basic service metadata",
    status_code=fa.status.HTTP_200_OK,
    response_model=VersionContent,
)
async def root() -> JSONResponse:
    return JSONResponse(
        content=to_json(VersionContent(version=VERSION)),
        status_code=fa.status.HTTP_200_OK,
    )


async def read_fields(request: fa.Request) -> ty.Dict[str, ty.Any]:
    """Query string merged with the body; body fields win."""
    fields: ty.Dict[str, ty.Any] = dict(request.query_params)
    body = await request.body()
    if not body:
        return fields

    payload: ty.Any
    if request.headers.get("content-type", "").startswith("application/json"):
        try:
            payload = json.loads(body)
        except ValueError as e:
            raise MalformedPayload(f"Body is not valid JSON: {e}") from e
        if not isinstance(payload, dict):
            raise MalformedPayload("Body must be a JSON object")
    else:
        form = await request.form()
        payload = {k: v for k, v in form.items() if isinstance(v, str)}

    for name, value in payload.items():
        if isinstance(value, (list, dict)):
            raise MalformedPayload(f"Field {name} is not a scalar")
    fields.update(payload)
    return fields


def publish(request: fa.Request, topic: topics.Topic, project: str, uuid: str) -> None:
    if request.app.kafka_producer is None:
        return
    try:
        topics.send_to_topic(
            request.app.kafka_producer,
            topic,
            topics.IssueEventSchema(project=project, issue_id=uuid),
        )
    except kafka.errors.KafkaError as e:
        # the write is already committed; the event is lost
        logging.exception(e)


issue_router = fa.APIRouter()


@issue_router.get(
    "/{project}",
    summary="List Issues of a project",
    status_code=fa.status.HTTP_200_OK,
    response_model=ty.List[Issue],
)
async def issues_list(request: fa.Request, project: str) -> JSONResponse:
    return JSONResponse(
        content=list(
            map(
                lambda x: to_json(Issue(**x)),
                list_issues(request.app.store, project, request.query_params),
            )
        ),
        status_code=fa.status.HTTP_200_OK,
    )


@issue_router.post(
    "/{project}",
    summary="Create Issue",
    response_description="Issue created",
    status_code=fa.status.HTTP_200_OK,
    response_model=Issue,
    responses={
        400: {"model": IssueErrorContent, "description": "Required field(s) missing"}
    },
)
async def issues_create(request: fa.Request, project: str) -> JSONResponse:
    outcome = create_issue(request.app.store, project, await read_fields(request))
    if outcome.status == CreateStatus.created:
        publish(request, topics.ISSUE_CREATED, project, outcome.issue.uuid)
    return create_response(outcome)


@issue_router.put(
    "/{project}",
    summary="Update fields of an Issue",
    response_description="Issue updated",
    status_code=fa.status.HTTP_200_OK,
    response_model=ResultContent,
    responses={
        400: {"model": IssueErrorContent, "description": "Missing _id or no fields"},
        404: {"model": IssueErrorContent, "description": "Issue not found"},
    },
)
async def issues_update(request: fa.Request, project: str) -> JSONResponse:
    outcome = update_issue(request.app.store, project, await read_fields(request))
    if outcome.status == UpdateStatus.success:
        publish(request, topics.ISSUE_UPDATED, project, outcome.uuid)
    return update_response(outcome)


@issue_router.delete(
    "/{project}",
    summary="Delete Issue",
    response_description="Issue deleted",
    status_code=fa.status.HTTP_200_OK,
    response_model=ResultContent,
    responses={
        400: {"model": IssueErrorContent, "description": "Missing _id"},
        404: {"model": IssueErrorContent, "description": "Issue not found"},
    },
)
async def issues_delete(request: fa.Request, project: str) -> JSONResponse:
    fields = await read_fields(request)
    outcome = delete_issue(request.app.store, project, fields.get("_id"))
    if outcome.status == DeleteStatus.success:
        publish(request, topics.ISSUE_DELETED, project, outcome.uuid)
    return delete_response(outcome)


app.include_router(issue_router, tags=["Issue tracker"], prefix="/api/issues")
