"""Testes do barramento de eventos, do canal de erros e do stream SSE."""
import asyncio
import json

from patrimonio.events import EventBus, ErrorChannel, StoreChange, WriteRejected, format_sse, stream_events


def _rejected(user_id="u1", path="assets/x"):
    return WriteRejected(user_id=user_id, operation="update", path=path, message="denied", payload={})


def test_publish_reaches_subscribers():
    event_bus = EventBus()
    seen = []
    unsubscribe = event_bus.subscribe(seen.append)
    event_bus.publish(StoreChange(user_id="u1", collection="assets"))
    unsubscribe()
    event_bus.publish(StoreChange(user_id="u1", collection="assets"))
    assert len(seen) == 1


def test_failing_subscriber_does_not_block_others():
    event_bus = EventBus()
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    event_bus.subscribe(broken)
    event_bus.subscribe(seen.append)
    event_bus.publish(StoreChange(user_id="u1", collection="assets"))
    assert len(seen) == 1


def test_error_channel_per_user_and_bounded():
    event_bus = EventBus()
    published = []
    event_bus.subscribe(published.append)
    channel = ErrorChannel(event_bus, maxlen=2)

    for i in range(3):
        channel.report(_rejected(path=f"assets/{i}"))
    channel.report(_rejected(user_id="u2"))

    assert [e.path for e in channel.recent("u1")] == ["assets/1", "assets/2"]
    assert len(published) == 4
    assert len(channel.drain("u1")) == 2
    assert channel.recent("u1") == []
    assert len(channel.recent("u2")) == 1


def test_format_sse():
    message = format_sse(_rejected())
    assert message.startswith("event: permission-error\ndata: ")
    assert message.endswith("\n\n")
    payload = json.loads(message.split("data: ", 1)[1])
    assert payload["path"] == "assets/x"


def test_stream_events_filters_by_user():
    async def run():
        event_bus = EventBus()
        stream = stream_events("u1", event_bus)
        assert await stream.__anext__() == ": connected\n\n"

        pending = asyncio.ensure_future(stream.__anext__())
        await asyncio.sleep(0)
        event_bus.publish(StoreChange(user_id="u2", collection="assets"))
        event_bus.publish(StoreChange(user_id="u1", collection="assets", ids=["a1"]))
        message = await asyncio.wait_for(pending, timeout=1)
        await stream.aclose()
        return message, event_bus.subscriber_count

    message, remaining = asyncio.run(run())
    assert message.startswith("event: change\n")
    assert '"ids": ["a1"]' in message
    assert remaining == 0
