"""Tests for the Kafka topic helpers."""

from __future__ import annotations

import pytest
from pydantic import BaseModel

from common import topics
from tests.conftest import RecordingProducer


class NotAnIssueEvent(BaseModel):
    issue_id: str


def test_send_to_topic_serializes_message(producer: RecordingProducer) -> None:
    message = topics.IssueEventSchema(project="apitest", issue_id="abc")
    topics.send_to_topic(producer, topics.ISSUE_CREATED, message)
    assert producer.sent == [("Issue.Created.0", {"project": "apitest", "issue_id": "abc"})]


def test_send_to_topic_rejects_wrong_schema(producer: RecordingProducer) -> None:
    with pytest.raises(topics.KafkaTopicValidationError):
        topics.send_to_topic(producer, topics.ISSUE_DELETED, NotAnIssueEvent(issue_id="abc"))
    assert producer.sent == []


def test_topics_are_hashable() -> None:
    assert len({topics.ISSUE_CREATED, topics.ISSUE_UPDATED, topics.ISSUE_DELETED}) == 3
