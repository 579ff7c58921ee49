import datetime as dt
import logging
import typing as ty

from fastapi.encoders import jsonable_encoder as to_json

from issuetracker.models import Issue, IssueCreateRequest, utcnow
from issuetracker.outcomes import CreateOutcome, CreateStatus
from issuetracker.storage import IssueStore


def create_issue(
    store: IssueStore,
    project: str,
    fields: ty.Mapping[str, ty.Any],
    now: ty.Callable[[], dt.datetime] = utcnow,
) -> CreateOutcome:
    """Validate raw creation input, fill defaults and persist the new issue.

    Nothing is stored when a required field is missing or blank.
    """
    create_request = IssueCreateRequest.model_validate(dict(fields))
    missing = create_request.missing_fields()
    if missing:
        logging.info(f"Rejected issue in {project}: missing {', '.join(missing)}")
        return CreateOutcome(
            status=CreateStatus.missing_required_fields, missing=missing
        )

    timestamp = now()
    issue = Issue(
        project=project,
        **create_request.model_dump(),
        open=True,
        created_on=timestamp,
        updated_on=timestamp,
    )
    store.insert(to_json(issue))
    logging.info(f"Created Issue {issue.uuid} in {project}")

    return CreateOutcome(status=CreateStatus.created, issue=issue)
