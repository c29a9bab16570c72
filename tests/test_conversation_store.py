import asyncio
import unittest

import pytest

from support_chat.conversation_store import ConversationStore, MirrorCache, new_message
from support_chat.db import make_engine
from support_chat.message_log import SqlMessageLog


def _msg(cid: str, n: int):
    return new_message(cid, "user", f"message {n}", is_read=False)


def test_mirror_length_is_capped_at_fifty():
    mirror = MirrorCache(max_messages=50)
    for n in range(1, 121):
        mirror.append("c1", _msg("c1", n))
        recent = mirror.recent("c1")
        assert len(recent) == min(n, 50)
        assert recent[-1].message == f"message {n}"
        assert recent[0].message == f"message {max(1, n - 49)}"


def test_mirror_pair_keeps_fifo_order():
    mirror = MirrorCache(max_messages=3)
    user = new_message("c1", "user", "u", is_read=False)
    bot = new_message("c1", "bot", "b", is_read=True)
    mirror.append("c1", _msg("c1", 0), _msg("c1", 1))
    mirror.append("c1", user, bot)
    assert [m.message for m in mirror.recent("c1")] == ["message 1", "u", "b"]


def test_mirror_evicts_least_recent_conversation():
    mirror = MirrorCache(max_messages=5, max_conversations=2)
    mirror.append("a", _msg("a", 1))
    mirror.append("b", _msg("b", 1))
    mirror.append("a", _msg("a", 2))
    mirror.append("c", _msg("c", 1))
    assert "a" in mirror
    assert "c" in mirror
    assert "b" not in mirror
    assert len(mirror) == 2
    assert mirror.stats() == {"conversations": 2, "messages": 3}


def test_mirror_rejects_non_positive_capacity():
    with pytest.raises(ValueError):
        MirrorCache(max_messages=0)


class TestConversationStore(unittest.TestCase):
    def setUp(self):
        self.engine = make_engine("sqlite://")
        self.log = SqlMessageLog(self.engine)
        self.mirror = MirrorCache()
        self.store = ConversationStore(self.log, self.mirror, timeout=2.0)

    def tearDown(self):
        self.engine.dispose()

    def test_turn_writes_user_then_bot(self):
        user, bot = asyncio.run(self.store.record_turn("c1", "Hi there", "Hello!"))
        self.assertEqual(user.sender, "user")
        self.assertFalse(user.is_read)
        self.assertEqual(bot.sender, "bot")
        self.assertTrue(bot.is_read)
        history = asyncio.run(self.store.get_history("c1"))
        self.assertEqual([(m.sender, m.message) for m in history], [("user", "Hi there"), ("bot", "Hello!")])
        self.assertEqual({m.conversation_id for m in history}, {"c1"})
        self.assertEqual([m.id for m in self.mirror.recent("c1")], [user.id, bot.id])

    def test_history_is_per_conversation_and_ordered(self):
        async def run():
            await self.store.record_turn("c1", "one", "r1")
            await self.store.record_turn("c2", "other", "r2")
            await self.store.record_turn("c1", "two", "r3")
            return await self.store.get_history("c1")

        history = asyncio.run(run())
        self.assertEqual([m.message for m in history], ["one", "r1", "two", "r3"])
        stamps = [m.timestamp for m in history]
        self.assertEqual(stamps, sorted(stamps))
        self.assertIsNotNone(stamps[0].tzinfo)

    def test_durable_log_is_not_trimmed(self):
        store = ConversationStore(self.log, MirrorCache(max_messages=4), timeout=2.0)

        async def run():
            for n in range(5):
                await store.record_turn("c1", f"q{n}", f"a{n}")
            return await store.get_history("c1")

        history = asyncio.run(run())
        self.assertEqual(len(history), 10)
        self.assertEqual(len(store.mirror.recent("c1")), 4)
        self.assertEqual([m.message for m in store.mirror.recent("c1")], ["q3", "a3", "q4", "a4"])


class TestMessageLogAdmin(unittest.TestCase):
    def setUp(self):
        self.engine = make_engine("sqlite://")
        self.log = SqlMessageLog(self.engine)
        self.store = ConversationStore(self.log, MirrorCache(), timeout=2.0)

    def tearDown(self):
        self.engine.dispose()

    def test_conversation_summaries_and_mark_read(self):
        async def run():
            await self.store.record_turn("c1", "first", "r1")
            await self.store.record_turn("c1", "second", "r2")
            await self.store.record_turn("c2", "hello", "r3")
            summaries = await self.log.list_conversations()
            updated = await self.log.mark_as_read("c1")
            history = await self.log.list_by_conversation("c1")
            return summaries, updated, history

        summaries, updated, history = asyncio.run(run())
        self.assertEqual([s.conversation_id for s in summaries], ["c2", "c1"])
        self.assertEqual(summaries[1].message_count, 4)
        self.assertEqual(summaries[1].last_message.message, "r2")
        self.assertEqual(updated, 2)
        self.assertTrue(all(m.is_read for m in history))
