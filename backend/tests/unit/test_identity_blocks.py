import pytest

from mycircle.domain.common.exceptions import NotFound, ValidationError
from mycircle.realtime.presence import PresenceRegistry


@pytest.mark.asyncio
async def test_block_and_unblock(world):
    blocked = await world.identity.block("alice", "bob")
    assert blocked.id == "bob"

    assert await world.identity.is_blocked("alice", "bob")
    assert await world.identity.is_blocked("bob", "alice")
    assert [item.id for item in await world.identity.list_blocked("alice")] == ["bob"]
    assert await world.identity.list_blocked("bob") == []

    await world.identity.unblock("alice", "bob")
    assert not await world.identity.is_blocked("bob", "alice")
    with pytest.raises(NotFound):
        await world.identity.unblock("alice", "bob")


@pytest.mark.asyncio
async def test_block_guards(world):
    with pytest.raises(ValidationError):
        await world.identity.block("alice", "alice")
    with pytest.raises(NotFound):
        await world.identity.block("alice", "ghost")


@pytest.mark.asyncio
async def test_summaries_reflect_presence_and_missing_users(world):
    world.presence.register("bob", "sid-1")

    summaries = await world.identity.summaries(["bob", "alice", "ghost"])

    assert summaries["bob"].is_online
    assert not summaries["alice"].is_online
    assert summaries["ghost"].display_name == "Unknown user"


def test_presence_reports_first_and_last_connection():
    registry = PresenceRegistry()

    assert registry.register("alice", "sid-1") is True
    assert registry.register("alice", "sid-2") is False
    assert registry.connection_count("alice") == 2

    assert registry.unregister("sid-1") is None
    assert registry.is_online("alice")
    assert registry.unregister("sid-2") == "alice"
    assert not registry.is_online("alice")
    assert registry.unregister("sid-2") is None


def test_presence_reregistering_a_sid_moves_it():
    registry = PresenceRegistry()
    registry.register("alice", "sid-1")
    registry.register("bob", "sid-1")

    assert not registry.is_online("alice")
    assert registry.user_for("sid-1") == "bob"
    assert registry.online_users() == {"bob"}
