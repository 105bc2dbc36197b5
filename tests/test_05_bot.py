"""Tests for RelayBot processing cycles.

Verifies:
1. Create vs resume, and which options each path carries
2. Identity persisted from the first created session; first-time setup runs once
3. Messages are processed one at a time, including heartbeat sends
4. Session released on success and on every failure path
5. Failures reach the user as an error reply; the next message still runs
6. Text commands, direct delivery, and out-of-band sends
"""
import asyncio
import logging

import pytest

from agent.core.events import AssistantDelta, TerminalResult, ToolCallStart, ToolResult
from platforms.bot import TriggerContext
from platforms.formatter import HEARTBEAT_NOT_CONFIGURED, HEARTBEAT_TRIGGERED
from tests.fakes import FakeAdapter, make_message


async def process(bot, adapter, *texts):
    bot.register_channel(adapter)
    for text in texts:
        await adapter.dispatch_message(make_message(text))
    await bot.wait_idle()


class TestCreateOrResume:

    @pytest.mark.asyncio
    async def test_first_message_creates_agent(self, bot, adapter, runtime, store, settings):
        await process(bot, adapter, "hello")

        kind, identity, options = runtime.calls[0]
        assert kind == "create"
        assert identity is None
        assert options.model == "test-model"
        assert [block.label for block in options.memory] == ["persona", "human"]
        assert "TestBot" in options.memory[0].value
        assert options.permission_mode == "bypassPermissions"
        assert options.cwd == settings.agent.working_dir

        assert store.agent_id == "sess-1"
        assert adapter.sent_texts == ["ok"]

    @pytest.mark.asyncio
    async def test_second_message_resumes(self, bot, adapter, runtime):
        await process(bot, adapter, "one", "two")

        assert [c[0] for c in runtime.calls] == ["create", "resume"]
        _, identity, options = runtime.calls[1]
        assert identity == "sess-1"
        assert options.model is None
        assert options.memory == []

    @pytest.mark.asyncio
    async def test_stored_identity_is_resumed(self, bot, adapter, runtime, store):
        store.set_agent("sess-old", "url")

        await process(bot, adapter, "hi")

        assert runtime.calls[0][:2] == ("resume", "sess-old")
        assert store.agent_id == "sess-old"

    @pytest.mark.asyncio
    async def test_reset_creates_new_agent(self, bot, adapter, runtime, store):
        await process(bot, adapter, "one")
        bot.reset()
        runtime.default_identity = "sess-2"

        await process(bot, adapter, "two")

        assert [c[0] for c in runtime.calls] == ["create", "create"]
        assert store.agent_id == "sess-2"


class TestFirstTimeSetup:

    @pytest.mark.asyncio
    async def test_setup_runs_once(self, bot, adapter, store, settings):
        await process(bot, adapter, "one")

        installed = settings.agent.working_dir / ".claude" / "skills" / "greeting" / "SKILL.md"
        assert installed.exists()
        assert store.agent_name == "TestBot"

        installed.unlink()
        await process(bot, adapter, "two")
        assert not installed.exists()

    @pytest.mark.asyncio
    async def test_identity_missing_is_not_persisted(self, bot, adapter, runtime, store):
        runtime.queue_session(assign_identity=None, events=[AssistantDelta("hi"), TerminalResult()])

        await process(bot, adapter, "hello")

        assert store.agent_id is None
        assert adapter.sent_texts == ["hi"]


class TestProcessing:

    @pytest.mark.asyncio
    async def test_message_envelope_sent_to_agent(self, bot, adapter, runtime):
        await process(bot, adapter, "what's up?")

        sent = runtime.sessions[0].sent[0]
        assert sent.startswith("[Fake · chat 42 · from id 7 · ")
        assert sent.endswith("]\nwhat's up?")

    @pytest.mark.asyncio
    async def test_last_message_target_recorded(self, bot, adapter, store):
        bot.register_channel(adapter)
        await adapter.dispatch_message(make_message("hi", chat_id="99", message_id="5"))
        await bot.wait_idle()

        target = bot.get_last_message_target()
        assert (target.channel, target.chat_id, target.message_id) == ("fake", "99", "5")
        assert store.get_info().last_used_at is not None

    @pytest.mark.asyncio
    async def test_single_flight(self, bot, adapter, runtime):
        for _ in range(3):
            runtime.queue_session(stream_delay=0.01)

        await process(bot, adapter, "a", "b", "c")

        assert runtime.max_active == 1
        assert len(runtime.sessions) == 3
        assert all(s.close_count == 1 for s in runtime.sessions)

    @pytest.mark.asyncio
    async def test_typing_failure_is_ignored(self, bot, runtime):
        class NoTyping(FakeAdapter):
            async def send_typing_indicator(self, chat_id):
                raise RuntimeError("typing unavailable")

        adapter = NoTyping()
        await process(bot, adapter, "hi")

        assert adapter.sent_texts == ["ok"]


class TestFailures:

    @pytest.mark.asyncio
    async def test_init_timeout(self, bot, adapter, runtime):
        runtime.queue_session(init_delay=1.0)

        await process(bot, adapter, "hi")

        assert adapter.sent_texts == ["Error: Session initialize timed out after 200ms"]
        assert runtime.sessions[0].close_count == 1
        assert runtime.active == 0

    @pytest.mark.asyncio
    async def test_init_error(self, bot, adapter, runtime):
        runtime.queue_session(fail_on="initialize")

        await process(bot, adapter, "hi")

        assert adapter.sent_texts == ["Error: initialize failed"]
        assert runtime.sessions[0].close_count == 1

    @pytest.mark.asyncio
    async def test_send_error(self, bot, adapter, runtime):
        runtime.queue_session(fail_on="send")

        await process(bot, adapter, "hi")

        assert adapter.sent_texts == ["Error: send failed"]
        assert runtime.sessions[0].close_count == 1

    @pytest.mark.asyncio
    async def test_stream_error(self, bot, adapter, runtime, store):
        runtime.queue_session(events=[AssistantDelta("partial"), RuntimeError("stream broke")])

        await process(bot, adapter, "hi")

        assert adapter.sent_texts[-1] == "Error: stream broke"
        assert runtime.sessions[0].close_count == 1
        assert store.agent_id is None

    @pytest.mark.asyncio
    async def test_next_message_runs_after_failure(self, bot, adapter, runtime):
        runtime.queue_session(fail_on="send")

        await process(bot, adapter, "first", "second")

        assert adapter.sent_texts == ["Error: send failed", "ok"]
        assert runtime.active == 0

    @pytest.mark.asyncio
    async def test_close_error_is_logged_only(self, bot, adapter, runtime, store):
        runtime.queue_session(fail_on="close")

        await process(bot, adapter, "first", "second")

        assert adapter.sent_texts == ["ok", "ok"]
        assert [s.close_count for s in runtime.sessions] == [1, 1]
        assert store.agent_id == "sess-1"


class TestCommands:

    @pytest.mark.asyncio
    async def test_status(self, bot, adapter):
        await process(bot, adapter, "hi")

        reply = await adapter.dispatch_command("status")

        assert "sess-1" in reply
        assert "Channels: fake" in reply

    @pytest.mark.asyncio
    async def test_heartbeat_not_configured(self, bot):
        assert await bot.handle_command("heartbeat") == HEARTBEAT_NOT_CONFIGURED

    @pytest.mark.asyncio
    async def test_heartbeat_triggers_callback(self, bot):
        fired = asyncio.Event()

        async def trigger():
            fired.set()

        bot.on_trigger_heartbeat = trigger
        assert await bot.handle_command("heartbeat") == HEARTBEAT_TRIGGERED
        await asyncio.wait_for(fired.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_unknown_command(self, bot):
        assert await bot.handle_command("frobnicate") is None


class TestChannels:

    @pytest.mark.asyncio
    async def test_start_isolates_failures(self, bot):
        class Broken(FakeAdapter):
            async def start(self):
                raise RuntimeError("cannot connect")

        good = FakeAdapter("good")
        bot.register_channel(Broken("broken"))
        bot.register_channel(good)

        await bot.start()

        assert good.started
        assert bot.get_status().channels == ["broken", "good"]

    @pytest.mark.asyncio
    async def test_stop_stops_all(self, bot):
        a, b = FakeAdapter("a"), FakeAdapter("b")
        bot.register_channel(a)
        bot.register_channel(b)

        await bot.stop()

        assert a.stopped and b.stopped

    @pytest.mark.asyncio
    async def test_deliver_to_channel(self, bot, adapter):
        bot.register_channel(adapter)

        assert await bot.deliver_to_channel("fake", "42", "ping") is True
        assert adapter.sent[0].chat_id == "42"
        assert adapter.sent_texts == ["ping"]

    @pytest.mark.asyncio
    async def test_deliver_to_unknown_channel(self, bot):
        assert await bot.deliver_to_channel("nowhere", "42", "ping") is False


class TestSendToAgent:

    @pytest.mark.asyncio
    async def test_turns_joined_after_tool_use(self, bot, runtime, store):
        runtime.queue_session(events=[
            AssistantDelta("Let me check."),
            ToolCallStart(tool_use_id="t1", name="Bash"),
            ToolResult(tool_use_id="t1", content="ok"),
            AssistantDelta("Done"),
            AssistantDelta("!"),
            TerminalResult(session_id="sess-1"),
        ])

        reply = await bot.send_to_agent("check", TriggerContext(type="heartbeat"))

        assert reply == "Let me check.\n\nDone!"
        assert runtime.sessions[0].sent == ["check"]
        assert runtime.sessions[0].close_count == 1
        assert store.agent_id == "sess-1"

    @pytest.mark.asyncio
    async def test_leading_tool_call_adds_no_separator(self, bot, runtime):
        runtime.queue_session(events=[
            ToolCallStart(tool_use_id="t1", name="Read"),
            AssistantDelta("Found"),
            AssistantDelta(" it"),
            TerminalResult(),
        ])

        assert await bot.send_to_agent("look") == "Found it"

    @pytest.mark.asyncio
    async def test_log_names_trigger_and_output_mode(self, bot, runtime, caplog):
        runtime.queue_session(events=[AssistantDelta("ok"), TerminalResult()])

        with caplog.at_level(logging.INFO, logger="platforms.bot"):
            await bot.send_to_agent("ping", TriggerContext(type="heartbeat", output_mode="deliver"))

        assert "[heartbeat:deliver] Sending to agent: ping" in caplog.text

    @pytest.mark.asyncio
    async def test_closes_on_failure(self, bot, runtime):
        runtime.queue_session(fail_on="send")

        with pytest.raises(RuntimeError, match="send failed"):
            await bot.send_to_agent("check")
        assert runtime.sessions[0].close_count == 1

    @pytest.mark.asyncio
    async def test_does_not_overlap_queued_message(self, bot, adapter, runtime):
        runtime.queue_session(stream_delay=0.02)
        runtime.queue_session(stream_delay=0.02)
        bot.register_channel(adapter)

        await adapter.dispatch_message(make_message("chat"))
        await asyncio.gather(bot.send_to_agent("heartbeat"), bot.wait_idle())

        assert runtime.max_active == 1
        assert len(runtime.sessions) == 2
