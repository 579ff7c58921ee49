import datetime as dt
import logging
import typing as ty

from fastapi.encoders import jsonable_encoder as to_json
from pydantic import ValidationError

from issuetracker.models import (
    Issue,
    IssueFilter,
    IssueUpdateRequest,
    utcnow,
)
from issuetracker.outcomes import (
    DeleteOutcome,
    DeleteStatus,
    UpdateOutcome,
    UpdateStatus,
)
from issuetracker.storage import IssueStore


def build_predicate(
    project: str, filter_fields: ty.Mapping[str, ty.Any]
) -> ty.Optional[dict]:
    """Turn raw filter input into an exact-match predicate on stored documents.

    Returns None when the filter can never match: a typed field whose value
    does not coerce, or a `project` other than the one being listed. Keys
    starting with `$` or containing `.` are treated the same way so they never
    reach Mongo as query operators or nested paths.
    """
    try:
        issue_filter = IssueFilter.model_validate(dict(filter_fields))
    except ValidationError as e:
        logging.info(f"Unsatisfiable filter on {project}: {e.error_count()} bad values")
        return None

    predicate = to_json(issue_filter, exclude_none=True)
    if any(field.startswith("$") or "." in field for field in predicate):
        return None
    if predicate.setdefault("project", project) != project:
        return None
    return predicate


def list_issues(
    store: IssueStore, project: str, filter_fields: ty.Mapping[str, ty.Any]
) -> ty.List[dict]:
    predicate = build_predicate(project, filter_fields)
    if predicate is None:
        return []
    return store.find_many(predicate)


def update_issue(
    store: IssueStore,
    project: str,
    fields: ty.Mapping[str, ty.Any],
    now: ty.Callable[[], dt.datetime] = utcnow,
) -> UpdateOutcome:
    # A missing _id wins over everything else, including invalid fields.
    raw_uuid = fields.get("_id")
    if raw_uuid is None or not str(raw_uuid).strip():
        return UpdateOutcome(status=UpdateStatus.missing_id)

    update_request = IssueUpdateRequest.model_validate(dict(fields))
    uuid = str(update_request.uuid)

    changes = update_request.changes()
    if not changes:
        logging.info(f"No update fields sent for Issue {uuid}")
        return UpdateOutcome(status=UpdateStatus.no_fields_provided, uuid=uuid)

    issue_document = store.find_one(project, uuid)
    if issue_document is None:
        logging.info(f"Issue {uuid} not found in {project}")
        return UpdateOutcome(status=UpdateStatus.not_found, uuid=uuid)
    issue = Issue(**issue_document)

    # updated_on must advance even if the clock did not
    changes["updated_on"] = max(
        now(), issue.updated_on + dt.timedelta(microseconds=1)
    )
    updated_document = to_json(issue.model_copy(update=changes))
    patch = {field: updated_document[field] for field in changes}

    if not store.update_one(project, uuid, patch):
        # deleted between lookup and write
        return UpdateOutcome(status=UpdateStatus.not_found, uuid=uuid)

    logging.info(f"Updated Issue {uuid}: {', '.join(sorted(patch))}")
    return UpdateOutcome(status=UpdateStatus.success, uuid=uuid)


def delete_issue(
    store: IssueStore, project: str, uuid: ty.Optional[str]
) -> DeleteOutcome:
    if uuid is None or not str(uuid).strip():
        return DeleteOutcome(status=DeleteStatus.missing_id)
    uuid = str(uuid)

    if not store.delete_one(project, uuid):
        logging.info(f"Issue {uuid} not found in {project}")
        return DeleteOutcome(status=DeleteStatus.not_found, uuid=uuid)

    logging.info(f"Deleted Issue {uuid} from {project}")
    return DeleteOutcome(status=DeleteStatus.success, uuid=uuid)
