from common.topics.send import KafkaTopicValidationError, send_to_topic
from common.topics.topics import (
    ISSUE_CREATED,
    ISSUE_DELETED,
    ISSUE_UPDATED,
    IssueEventSchema,
    Topic,
)
