"""Tests for the heartbeat service: silent mode, delivery target resolution, scheduling."""
import asyncio

import pytest

from core.settings import HeartbeatSettings
from platforms.heartbeat import HeartbeatService, parse_target
from platforms.store import MessageTarget


class FakeBot:
    def __init__(self, reply: str = "Reminder: standup at 10."):
        self.reply = reply
        self.prompts: list[tuple[str, str, str]] = []
        self.delivered: list[tuple[str, str, str]] = []
        self.last_target: MessageTarget | None = None

    async def send_to_agent(self, text, context=None):
        self.prompts.append((text, context.type, context.output_mode))
        return self.reply

    async def deliver_to_channel(self, channel_id, chat_id, text):
        self.delivered.append((channel_id, chat_id, text))
        return True

    def get_last_message_target(self):
        return self.last_target


class TestParseTarget:

    def test_valid(self):
        assert parse_target("telegram:42") == ("telegram", "42")
        assert parse_target("telegram:-100:7") == ("telegram", "-100:7")

    @pytest.mark.parametrize("target", ["telegram", ":42", "telegram:"])
    def test_invalid(self, target):
        assert parse_target(target) is None


class TestTrigger:

    @pytest.mark.asyncio
    async def test_silent_never_delivers(self):
        bot = FakeBot()
        bot.last_target = MessageTarget(channel="telegram", chat_id="42", updated_at="now")

        await HeartbeatService(bot, HeartbeatSettings(prompt="ping")).trigger()

        assert bot.prompts == [("ping", "heartbeat", "silent")]
        assert bot.delivered == []

    @pytest.mark.asyncio
    async def test_delivers_to_configured_target(self):
        bot = FakeBot()

        await HeartbeatService(bot, HeartbeatSettings(silent=False, target="telegram:99")).trigger()

        assert bot.prompts[0][2] == "deliver"
        assert bot.delivered == [("telegram", "99", "Reminder: standup at 10.")]

    @pytest.mark.asyncio
    async def test_falls_back_to_last_message_target(self):
        bot = FakeBot()
        bot.last_target = MessageTarget(channel="telegram", chat_id="42", updated_at="now")

        await HeartbeatService(bot, HeartbeatSettings(silent=False)).trigger()

        assert bot.delivered == [("telegram", "42", "Reminder: standup at 10.")]

    @pytest.mark.asyncio
    async def test_no_target_drops_reply(self):
        bot = FakeBot()

        await HeartbeatService(bot, HeartbeatSettings(silent=False)).trigger()

        assert bot.delivered == []

    @pytest.mark.asyncio
    async def test_empty_reply_not_delivered(self):
        bot = FakeBot(reply="  ")

        await HeartbeatService(bot, HeartbeatSettings(silent=False, target="telegram:1")).trigger()

        assert bot.delivered == []


class TestSchedule:

    @pytest.mark.asyncio
    async def test_runs_periodically_until_stopped(self):
        bot = FakeBot()
        service = HeartbeatService(bot, HeartbeatSettings(interval_min=0.02 / 60))

        service.start()
        service.start()
        await asyncio.sleep(0.07)
        await service.stop()
        count = len(bot.prompts)
        await asyncio.sleep(0.05)

        assert count >= 2
        assert len(bot.prompts) == count
        assert not service.is_running

    @pytest.mark.asyncio
    async def test_tick_failure_keeps_loop_alive(self):
        class FlakyBot(FakeBot):
            calls = 0

            async def send_to_agent(self, text, context=None):
                FlakyBot.calls += 1
                if FlakyBot.calls == 1:
                    raise RuntimeError("agent unavailable")
                return await super().send_to_agent(text, context)

        bot = FlakyBot()
        service = HeartbeatService(bot, HeartbeatSettings(interval_min=0.01 / 60))

        service.start()
        await asyncio.sleep(0.06)
        await service.stop()

        assert bot.prompts
