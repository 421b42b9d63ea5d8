import asyncio
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timedelta, timezone

import pytest

from app.core.dispatch import BackendClientHandle, ChatService
from app.core.errors import (
    BackendCallError,
    ConfigurationError,
    InfrastructureError,
    ResponseFormatError,
)
from tests.fakes import (
    CountingFactory,
    FakeGeminiClient,
    empty_response,
    sent_turns,
    text_response,
    transcript,
)


def _service(settings, client=None, factory=None) -> ChatService:
    factory = factory or CountingFactory(client=client or FakeGeminiClient())
    return ChatService(settings, client_factory=factory)


@pytest.mark.asyncio
async def test_first_and_second_message_build_transcript(make_settings, fake_client):
    service = _service(make_settings(), fake_client)
    fake_client.models.queue.append(text_response("Consider a camera with night vision."))
    fake_client.models.queue.append(text_response("You're welcome!"))

    reply = await service.generate_reply("1.2.3.4", "What camera should I buy?")

    assert reply == "Consider a camera with night vision."
    session = service.sessions.get_session("1.2.3.4")
    assert transcript(session) == [
        ("user", "What camera should I buy?"),
        ("model", "Consider a camera with night vision."),
    ]
    assert sent_turns(fake_client.models.calls[0]) == [("user", "What camera should I buy?")]

    reply = await service.generate_reply("1.2.3.4", "Thanks")

    assert reply == "You're welcome!"
    assert sent_turns(fake_client.models.calls[1]) == [
        ("user", "What camera should I buy?"),
        ("model", "Consider a camera with night vision."),
        ("user", "Thanks"),
    ]
    assert transcript(session) == [
        ("user", "What camera should I buy?"),
        ("model", "Consider a camera with night vision."),
        ("user", "Thanks"),
        ("model", "You're welcome!"),
    ]


@pytest.mark.asyncio
async def test_backend_receives_model_name_and_generation_config(make_settings, fake_client):
    service = _service(make_settings(gemini_model="gemini-2.0-flash"), fake_client)

    await service.generate_reply("1.2.3.4", "hi")

    call = fake_client.models.calls[0]
    assert call["model"] == "gemini-2.0-flash"
    assert call["config"].temperature == 1
    assert call["config"].max_output_tokens == 8192


@pytest.mark.asyncio
async def test_generation_config_built_once_per_client(make_settings, fake_client):
    service = _service(make_settings(), fake_client)

    await service.generate_reply("1.2.3.4", "one")
    await service.generate_reply("5.6.7.8", "two")

    configs = [call["config"] for call in fake_client.models.calls]
    assert configs[0] is configs[1]


@pytest.mark.asyncio
async def test_missing_api_key_touches_no_session(make_settings, fake_client):
    factory = CountingFactory(client=fake_client)
    service = ChatService(make_settings(gemini_api_key=None), client_factory=factory)

    with pytest.raises(ConfigurationError, match="GEMINI_API_KEY"):
        await service.generate_reply("1.2.3.4", "hello")

    assert len(service.sessions) == 0
    assert factory.calls == []
    assert fake_client.models.calls == []


@pytest.mark.asyncio
async def test_client_creation_failure_is_cached(make_settings):
    factory = CountingFactory(error=RuntimeError("bad credentials"))
    service = ChatService(make_settings(), client_factory=factory)

    for _ in range(3):
        with pytest.raises(InfrastructureError, match="Error creating AI client: bad credentials"):
            await service.generate_reply("1.2.3.4", "hello")

    assert factory.calls == ["test-key"]
    assert service.backend.state == "failed"
    assert len(service.sessions) == 0


@pytest.mark.asyncio
async def test_concurrent_cold_calls_create_client_once(make_settings, fake_client):
    factory = CountingFactory(client=fake_client)
    service = ChatService(make_settings(), client_factory=factory)

    replies = await asyncio.gather(
        *(service.generate_reply(f"10.0.0.{i}", f"q{i}") for i in range(8))
    )

    assert replies == [f"echo: q{i}" for i in range(8)]
    assert len(factory.calls) == 1
    assert len(service.sessions) == 8


def test_handle_creates_client_once_across_threads(fake_client):
    factory = CountingFactory(client=fake_client, delay=0.05)
    handle = BackendClientHandle(factory)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(lambda _: handle.get("key"), range(8)))

    assert len(factory.calls) == 1
    assert all(client is fake_client for client, _ in results)
    assert all(config is results[0][1] for _, config in results)
    assert handle.state == "ready"


def test_handle_failure_seen_by_every_thread():
    factory = CountingFactory(error=ValueError("no network"), delay=0.05)
    handle = BackendClientHandle(factory)

    def _attempt(_):
        try:
            handle.get("key")
        except InfrastructureError as exc:
            return str(exc)
        return None

    with ThreadPoolExecutor(max_workers=8) as pool:
        errors = list(pool.map(_attempt, range(8)))

    assert len(factory.calls) == 1
    assert errors == ["Error creating AI client: no network"] * 8


def test_handle_starts_uninitialized():
    assert BackendClientHandle(CountingFactory()).state == "uninitialized"


@pytest.mark.asyncio
async def test_zero_candidates_leaves_transcript_unchanged(make_settings, fake_client):
    service = _service(make_settings(), fake_client)
    await service.generate_reply("1.2.3.4", "first")
    session = service.sessions.get_session("1.2.3.4")
    before = len(session.history)

    fake_client.models.queue.append(empty_response())
    with pytest.raises(ResponseFormatError, match="no valid candidates found in response"):
        await service.generate_reply("1.2.3.4", "second")

    assert len(session.history) == before == 2


@pytest.mark.asyncio
async def test_send_failure_is_surfaced_and_not_recorded(make_settings, fake_client):
    service = _service(make_settings(), fake_client)
    fake_client.models.queue.append(RuntimeError("quota exceeded"))

    with pytest.raises(BackendCallError, match="Error sending message: quota exceeded"):
        await service.generate_reply("1.2.3.4", "hello")

    session = service.sessions.get_session("1.2.3.4")
    assert session is not None
    assert session.history == []
    assert service.backend.state == "ready"

    # No retry, but the next request goes through.
    assert await service.generate_reply("1.2.3.4", "again") == "echo: again"
    assert len(fake_client.models.calls) == 2


@pytest.mark.asyncio
async def test_empty_message_is_forwarded(make_settings, fake_client):
    service = _service(make_settings(), fake_client)

    reply = await service.generate_reply("1.2.3.4", "")

    assert reply == "echo: "
    assert transcript(service.sessions.get_session("1.2.3.4")) == [("user", ""), ("model", "echo: ")]


@pytest.mark.asyncio
async def test_same_identity_requests_are_not_serialized(make_settings):
    client = FakeGeminiClient(delay=0.05)
    service = _service(make_settings(), client)

    await asyncio.gather(
        service.generate_reply("1.2.3.4", "alpha"),
        service.generate_reply("1.2.3.4", "beta"),
    )

    # Both requests went out with the same (empty) prior history.
    assert sorted(len(call["contents"]) for call in client.models.calls) == [1, 1]

    turns = transcript(service.sessions.get_session("1.2.3.4"))
    assert len(turns) == 4
    for user_turn, model_turn in zip(turns[::2], turns[1::2]):
        assert user_turn[0] == "user"
        assert model_turn == ("model", "echo: " + user_turn[1])
    assert {turns[0][1], turns[2][1]} == {"alpha", "beta"}


@pytest.mark.asyncio
async def test_idle_sessions_pruned_when_ttl_enabled(make_settings, fake_client):
    service = _service(make_settings(session_ttl_seconds=60), fake_client)
    stale = service.sessions.get_or_create_session("old")
    stale.last_seen = datetime.now(timezone.utc) - timedelta(minutes=5)

    await service.generate_reply("1.2.3.4", "hello")

    assert service.sessions.get_session("old") is None
    assert service.sessions.get_session("1.2.3.4") is not None


@pytest.mark.asyncio
async def test_sessions_kept_when_ttl_disabled(make_settings, fake_client):
    service = _service(make_settings(), fake_client)
    stale = service.sessions.get_or_create_session("old")
    stale.last_seen = datetime.now(timezone.utc) - timedelta(days=365)

    await service.generate_reply("1.2.3.4", "hello")

    assert service.sessions.get_session("old") is stale
