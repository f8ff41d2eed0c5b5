"""Tests for folding streamed chat fragments into a transcript."""

from __future__ import annotations

import pytest

from deepdive.schemas import ChatMessage
from deepdive.services import StreamAccumulator


async def fragments(*parts: str):
    for part in parts:
        yield part


async def failing_stream(*parts: str):
    for part in parts:
        yield part
    raise RuntimeError("stream broke")


@pytest.mark.asyncio
async def test_fragments_fold_into_last_model_message() -> None:
    history = [ChatMessage(role="user", text="Why do I lose on Fridays?")]
    updates = []
    accumulator = StreamAccumulator(history, on_update=updates.append)

    text = await accumulator.consume(fragments("You ", "over", "trade."))

    assert text == "You overtrade."
    assert accumulator.messages == [
        ChatMessage(role="user", text="Why do I lose on Fridays?"),
        ChatMessage(role="model", text="You overtrade."),
    ]
    assert [update[-1].text for update in updates] == ["", "You ", "You over", "You overtrade."]
    assert history == [ChatMessage(role="user", text="Why do I lose on Fridays?")]


@pytest.mark.asyncio
async def test_empty_stream_leaves_empty_model_message() -> None:
    accumulator = StreamAccumulator([ChatMessage(role="user", text="hi")])

    assert await accumulator.consume(fragments()) == ""
    assert accumulator.messages[-1] == ChatMessage(role="model", text="")


@pytest.mark.asyncio
async def test_error_propagates_and_discard_drops_placeholder() -> None:
    history = [ChatMessage(role="user", text="hi")]
    accumulator = StreamAccumulator(history)

    with pytest.raises(RuntimeError):
        await accumulator.consume(failing_stream("partial"))

    assert accumulator.messages[-1].text == "partial"
    assert accumulator.discard() == history


def test_feed_does_not_touch_user_turns() -> None:
    accumulator = StreamAccumulator([ChatMessage(role="user", text="question")])

    accumulator.feed("orphan")

    assert accumulator.messages == [ChatMessage(role="user", text="question")]
    assert accumulator.text == "orphan"


def test_begin_is_idempotent() -> None:
    accumulator = StreamAccumulator([])

    accumulator.begin()
    accumulator.begin()

    assert accumulator.messages == [ChatMessage(role="model", text="")]


@pytest.mark.asyncio
async def test_fragments_never_appear_out_of_order() -> None:
    seen = []
    accumulator = StreamAccumulator([], on_update=lambda messages: seen.append(messages[-1].text))

    await accumulator.consume(fragments("Hel", "lo, ", "world"))

    assert seen == ["", "Hel", "Hello, ", "Hello, world"]
    assert accumulator.messages[-1].text == "Hello, world"
