"""Shared pytest fixtures for issuetracker tests."""

from __future__ import annotations

import datetime as dt
import typing as ty
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from issuetracker.app import app
from issuetracker.storage import MemoryIssueStore


class RecordingProducer:
    """Stands in for kafka.KafkaProducer, keeping what was sent."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, ty.Any]] = []

    def send(self, topic: str, value: ty.Any) -> None:
        self.sent.append((topic, value))

    def flush(self) -> None:
        pass


class TickingClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: dt.datetime | None = None) -> None:
        self.current = start or dt.datetime(2024, 3, 1, 12, 0, tzinfo=dt.timezone.utc)

    def __call__(self) -> dt.datetime:
        now = self.current
        self.current += dt.timedelta(seconds=1)
        return now


@pytest.fixture
def store() -> MemoryIssueStore:
    return MemoryIssueStore()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def producer() -> RecordingProducer:
    return RecordingProducer()


@pytest.fixture
def client(store: MemoryIssueStore, producer: RecordingProducer) -> Generator[TestClient, None, None]:
    """HTTP client over the app, bypassing startup so no Mongo or Kafka is needed."""
    app.store = store
    app.kafka_producer = producer
    yield TestClient(app)
    del app.store
    del app.kafka_producer
