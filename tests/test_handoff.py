"""Unit tests for the stage handoff channel."""
import asyncio

import pytest

from dataflow.adapters.handoff import Handoff


@pytest.mark.asyncio
async def test_send_waits_until_receiver_is_done():
    handoff = Handoff("test")
    events = []

    async def producer():
        for item in "ab":
            await handoff.send(item)
            events.append(f"sent {item}")
        await handoff.close()

    async def consumer():
        async for item in handoff:
            events.append(f"got {item}")
            await asyncio.sleep(0)
            events.append(f"done {item}")

    await asyncio.gather(producer(), consumer())

    assert events == ["got a", "done a", "sent a", "got b", "done b", "sent b"]


@pytest.mark.asyncio
async def test_close_ends_iteration():
    handoff = Handoff()

    async def producer():
        await handoff.close()

    async def consumer():
        return [item async for item in handoff]

    _, received = await asyncio.gather(producer(), consumer())
    assert received == []


@pytest.mark.asyncio
async def test_send_after_close_raises():
    handoff = Handoff()
    await handoff.close()
    with pytest.raises(RuntimeError):
        await handoff.send("late")
