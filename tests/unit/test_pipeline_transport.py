"""Unit tests for publishing, consuming and dead-lettering task messages."""

from __future__ import annotations

import types
import typing as typ

import dramatiq
import httpx
import pytest
from dramatiq import Worker
from dramatiq.brokers.stub import StubBroker

from gitcast.config import PipelineConfig
from gitcast.pipeline.dispatch import PipelineDependencies
from gitcast.pipeline.messages import (
    GITHUB_QUEUE,
    NEYNAR_QUEUE,
    FetchGitHubEvents,
    decode_message,
)
from gitcast.pipeline.middleware import DeadLetterMiddleware
from gitcast.pipeline.observability import TaskEventLogger
from gitcast.pipeline.publisher import DramatiqTaskPublisher
from tests.helpers.fakes import (
    FakeDirectory,
    FakeGitHub,
    FakeSocialGraph,
    RecordingPublisher,
    profile,
)

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from gitcast.farcaster.models import NeynarUser
    from gitcast.store import UserProfile


class _ProfileStore:
    """Store double that only records upserted profiles."""

    def __init__(self) -> None:
        self.profiles: list[UserProfile] = []

    async def upsert_profile(self, user_profile: UserProfile, **_: object) -> None:
        self.profiles.append(user_profile)


class _UnreachableGraph(FakeSocialGraph):
    """Social graph whose profile lookups always fail with a network error."""

    def __init__(self) -> None:
        super().__init__()
        self.attempts = 0

    async def fetch_users(self, fids: cabc.Sequence[int]) -> dict[int, NeynarUser]:
        self.attempts += 1
        raise httpx.ConnectError("social graph unreachable")


class _DeadLetterEvents(TaskEventLogger):
    def __init__(self) -> None:
        self.dead: list[dict[str, object]] = []

    def log_task_dead_lettered(
        self, *, actor_name: str, message_id: str, retries: int, payload: object
    ) -> None:
        self.dead.append({"actor": actor_name, "retries": retries, "payload": payload})


@pytest.mark.asyncio
async def test_publisher_routes_to_stage_queue() -> None:
    """Messages land on their stage's queue addressed to its actor."""
    broker = StubBroker()
    publisher = DramatiqTaskPublisher(broker)

    await publisher.publish(FetchGitHubEvents(fid=4, external_username="octo"))

    queue = broker.queues[GITHUB_QUEUE]
    envelope = dramatiq.Message.decode(queue.get_nowait())
    assert envelope.actor_name == "process_github_task", "github actor expected"
    assert decode_message(envelope.args[0]) == FetchGitHubEvents(
        fid=4, external_username="octo"
    ), "payload should round-trip"
    assert NEYNAR_QUEUE not in broker.queues, "no other queue touched"


def test_dead_letter_middleware_logs_rejections() -> None:
    """Rejected messages are reported with retries and payload."""
    events = _DeadLetterEvents()
    message = dramatiq.Message(
        queue_name=NEYNAR_QUEUE,
        actor_name="process_neynar_task",
        args=({"type": "update_user", "fid": 1},),
        kwargs={},
        options={"retries": 5},
    )

    DeadLetterMiddleware(events).after_nack(StubBroker(), message)

    assert events.dead == [
        {
            "actor": "process_neynar_task",
            "retries": 5,
            "payload": {"type": "update_user", "fid": 1},
        }
    ], "dead-letter event expected"


class TestActors:
    """Actors consuming from an in-memory broker."""

    @pytest.fixture
    def actors(self) -> typ.Iterator[types.ModuleType]:
        """Import the actors and reset their broker and dependencies."""
        from gitcast.pipeline import actors

        broker = actors.process_neynar_task.broker
        broker.flush_all()
        yield actors
        actors.configure_dependencies(None)
        broker.flush_all()

    @pytest.fixture
    def worker(self, actors: types.ModuleType) -> typ.Iterator[Worker]:
        """Run a worker over the actors' broker."""
        worker = Worker(actors.process_neynar_task.broker, worker_timeout=100)
        worker.start()
        yield worker
        worker.stop()

    def test_consumes_message(
        self, actors: types.ModuleType, worker: Worker
    ) -> None:
        """A valid message reaches its stage and is acknowledged."""
        store = _ProfileStore()
        actors.configure_dependencies(
            lambda: PipelineDependencies(
                store=store,  # type: ignore[arg-type]
                publisher=RecordingPublisher(),
                graph=FakeSocialGraph(users={6: profile(6, "fran")}),
                directory=FakeDirectory(),
                github=FakeGitHub(),
                config=PipelineConfig(),
            )
        )
        broker = actors.process_neynar_task.broker

        actors.process_neynar_task.send({"type": "fetch_user_data", "fid": 6})
        broker.join(NEYNAR_QUEUE, fail_fast=False)
        worker.join()

        assert [p.username for p in store.profiles] == ["fran"], "profile stored"
        assert broker.dead_letters == [], "nothing dead-lettered"

    def test_poison_message_is_dead_lettered(
        self, actors: types.ModuleType, worker: Worker
    ) -> None:
        """An undecodable message is rejected without redelivery."""
        broker = actors.process_neynar_task.broker

        actors.process_neynar_task.send({"type": "drop_tables", "fid": 1})
        broker.join(NEYNAR_QUEUE, fail_fast=False)
        worker.join()

        assert len(broker.dead_letters) == 1, "poison should be dead-lettered"
        assert broker.dead_letters[0].options.get("retries", 0) == 0, (
            "poison should not be retried"
        )


    def test_transient_failure_is_retried_then_dead_lettered(
        self,
        actors: types.ModuleType,
        worker: Worker,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        """A failing message is redelivered within budget, then dead-lettered."""
        monkeypatch.setattr(actors, "_CONFIG", PipelineConfig(task_max_retries=1))
        graph = _UnreachableGraph()
        actors.configure_dependencies(
            lambda: PipelineDependencies(
                store=_ProfileStore(),  # type: ignore[arg-type]
                publisher=RecordingPublisher(),
                graph=graph,
                directory=FakeDirectory(),
                github=FakeGitHub(),
                config=PipelineConfig(),
            )
        )
        broker = actors.process_neynar_task.broker

        actors.process_neynar_task.send_with_options(
            args=({"type": "fetch_user_data", "fid": 6},),
            min_backoff=1,
            max_backoff=1,
        )
        broker.join(NEYNAR_QUEUE, fail_fast=False)
        worker.join()

        assert graph.attempts == 2, "one delivery plus one redelivery expected"
        assert len(broker.dead_letters) == 1, "exhausted message dead-lettered"
        assert broker.dead_letters[0].args[0] == {
            "type": "fetch_user_data",
            "fid": 6,
        }, "dead letter keeps the payload"
