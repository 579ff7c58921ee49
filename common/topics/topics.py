import typing as ty

from pydantic import BaseModel

class Topic(BaseModel):
    name: str
    base_model: ty.Type[BaseModel]

    def __hash__(self):
        return hash(self.name)

class IssueEventSchema(BaseModel):
    project: str
    issue_id: str

ISSUE_CREATED = Topic(name="Issue.Created.0", base_model=IssueEventSchema)
ISSUE_UPDATED = Topic(name="Issue.Updated.0", base_model=IssueEventSchema)
ISSUE_DELETED = Topic(name="Issue.Deleted.0", base_model=IssueEventSchema)
