import asyncio
from realtime import RoomRegistry
from tests.helpers import FakeConnection


def test_join_is_idempotent_and_creates_room():
    async def _run():
        rooms = RoomRegistry()
        a = FakeConnection("a")
        await rooms.join(a, 1)
        await rooms.join(a, 1)
        members = await rooms.members(1)
        assert [c.id for c in members] == ["a"]
        assert await rooms.members(2) == []
    asyncio.run(_run())


def test_joining_new_room_keeps_previous_membership():
    async def _run():
        rooms = RoomRegistry()
        a = FakeConnection("a")
        await rooms.join(a, 1)
        await rooms.join(a, 2)
        assert await rooms.rooms_for(a) == {1, 2}
        assert [c.id for c in await rooms.members(1)] == ["a"]
    asyncio.run(_run())


def test_leave_all_removes_connection_from_every_room():
    async def _run():
        rooms = RoomRegistry()
        a, b = FakeConnection("a"), FakeConnection("b")
        await rooms.join(a, 1)
        await rooms.join(a, 2)
        await rooms.join(b, 1)
        left = await rooms.leave_all(a)
        assert left == {1, 2}
        assert [c.id for c in await rooms.members(1)] == ["b"]
        assert await rooms.members(2) == []
        assert await rooms.rooms_for(a) == set()
        # Second call is harmless
        assert await rooms.leave_all(a) == set()
    asyncio.run(_run())


def test_discard_single_membership():
    async def _run():
        rooms = RoomRegistry()
        a = FakeConnection("a")
        await rooms.join(a, 1)
        await rooms.join(a, 2)
        await rooms.discard(1, a)
        assert await rooms.members(1) == []
        assert await rooms.rooms_for(a) == {2}
    asyncio.run(_run())
