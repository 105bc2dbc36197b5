"""Telegram Bot API adapter.

Receives updates by long polling ``getUpdates`` and talks back through the
Bot API over httpx. Streamed replies are shown by editing the sent message
in place.
"""

import asyncio
import logging
from datetime import datetime, timezone

import httpx

from core.settings import TelegramSettings
from platforms.base import ChannelAdapter, ChannelError, InboundMessage, OutboundMessage, SendResult, split_message
from platforms.commands import usage_text

logger = logging.getLogger(__name__)

# Telegram message length limit
TELEGRAM_MAX_MESSAGE_LENGTH = 4096

# Telegram Bot API base URL
TELEGRAM_API_BASE = "https://api.telegram.org"

# Seconds to wait after a failed poll before trying again
POLL_RETRY_DELAY_S = 5.0

NOT_AUTHORIZED_TEXT = "Sorry, you are not allowed to use this bot."


class TelegramAdapter(ChannelAdapter):
    """Adapter for the Telegram Bot API (long polling)."""

    id = "telegram"
    name = "Telegram"
    supports_editing = True
    max_message_length = TELEGRAM_MAX_MESSAGE_LENGTH

    def __init__(
        self,
        settings: TelegramSettings,
        client: httpx.AsyncClient | None = None,
        api_base: str = TELEGRAM_API_BASE,
    ) -> None:
        super().__init__()
        if not settings.bot_token:
            raise ChannelError("TELEGRAM_BOT_TOKEN is not set")
        self._settings = settings
        self._api_base = f"{api_base}/bot{settings.bot_token}"
        # Long polls hold the request open for poll_timeout_s
        self._client = client or httpx.AsyncClient(timeout=settings.poll_timeout_s + 10.0)
        self._offset = 0
        self._poll_task: asyncio.Task | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        me = await self.get_me()
        logger.info(f"Telegram bot @{me.get('username', '?')} connected, polling for updates")
        self._poll_task = asyncio.create_task(self._poll_loop())

    async def stop(self) -> None:
        task, self._poll_task = self._poll_task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        await self._client.aclose()

    # ------------------------------------------------------------------
    # Bot API
    # ------------------------------------------------------------------

    async def _call(self, method: str, payload: dict | None = None):
        """Invoke a Bot API method and return its ``result``.

        Raises:
            ChannelError: On transport errors and non-ok responses.
        """
        try:
            resp = await self._client.post(f"{self._api_base}/{method}", json=payload or {})
        except httpx.HTTPError as e:
            raise ChannelError(f"Telegram {method} failed: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if resp.status_code != 200 or not data.get("ok"):
            description = data.get("description") or resp.text
            raise ChannelError(f"Telegram {method} failed: {resp.status_code} {description}")
        return data.get("result")

    async def get_me(self) -> dict:
        """Get bot info from Telegram."""
        return await self._call("getMe")

    async def send_message(self, message: OutboundMessage) -> SendResult:
        """Send a message, splitting it at the Telegram limit.

        Returns the ID of the first chunk, which is the one later edits target.
        """
        first_id: str | None = None
        for chunk in split_message(message.text, TELEGRAM_MAX_MESSAGE_LENGTH):
            payload: dict = {"chat_id": message.chat_id, "text": chunk}
            if message.thread_id:
                payload["message_thread_id"] = int(message.thread_id)
            result = await self._call("sendMessage", payload)
            if first_id is None:
                first_id = str(result["message_id"])
        return SendResult(message_id=first_id or "")

    async def edit_message(self, chat_id: str, message_id: str, text: str) -> None:
        payload = {
            "chat_id": chat_id,
            "message_id": int(message_id),
            "text": text,
        }
        try:
            await self._call("editMessageText", payload)
        except ChannelError as e:
            # Same text as before; nothing to do
            if "message is not modified" in str(e):
                return
            raise

    async def send_typing_indicator(self, chat_id: str) -> None:
        """Send typing action to Telegram chat."""
        await self._call("sendChatAction", {"chat_id": chat_id, "action": "typing"})

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    async def _poll_loop(self) -> None:
        while True:
            try:
                await self.poll_once()
            except ChannelError as e:
                logger.warning(f"Telegram polling failed: {e}")
                await asyncio.sleep(POLL_RETRY_DELAY_S)
            except Exception:
                logger.exception("Unexpected error while polling Telegram")
                await asyncio.sleep(POLL_RETRY_DELAY_S)

    async def poll_once(self) -> int:
        """Fetch one batch of updates and handle them. Returns the batch size."""
        updates = await self._call(
            "getUpdates",
            {
                "offset": self._offset,
                "timeout": self._settings.poll_timeout_s,
                "allowed_updates": ["message"],
            },
        )
        for update in updates or []:
            self._offset = update["update_id"] + 1
            try:
                await self.handle_update(update)
            except Exception:
                logger.exception(f"Failed to handle Telegram update {update.get('update_id')}")
        return len(updates or [])

    def is_allowed(self, from_user: dict) -> bool:
        """Check the sender against the DM policy."""
        if self._settings.dm_policy == "open":
            return True
        allowed = self._settings.allowed_user_ids
        return str(from_user.get("id", "")) in allowed or from_user.get("username", "") in allowed

    async def handle_update(self, update: dict) -> None:
        """Turn one Telegram update into a command reply or an inbound message."""
        message = update.get("message")
        if not message:
            return

        text = message.get("text", "")
        from_user = message.get("from", {})
        user_id = str(from_user.get("id", ""))
        chat_id = str(message.get("chat", {}).get("id", ""))
        if not text or not user_id or not chat_id:
            return

        thread_id = message.get("message_thread_id")
        thread_id = str(thread_id) if thread_id is not None else None

        if not self.is_allowed(from_user):
            logger.warning(f"Ignoring message from unauthorized Telegram user {user_id}")
            await self.send_message(OutboundMessage(chat_id=chat_id, text=NOT_AUTHORIZED_TEXT, thread_id=thread_id))
            return

        if text.startswith("/"):
            # "/status@my_bot args" -> "status"
            command = text[1:].split(maxsplit=1)[0].split("@", 1)[0] if text[1:].strip() else ""
            reply = await self.dispatch_command(command)
            await self.send_message(OutboundMessage(chat_id=chat_id, text=reply or usage_text(), thread_id=thread_id))
            return

        timestamp = datetime.fromtimestamp(message["date"], tz=timezone.utc) if "date" in message else datetime.now(timezone.utc)
        await self.dispatch_message(
            InboundMessage(
                channel=self.id,
                chat_id=chat_id,
                user_id=user_id,
                text=text,
                thread_id=thread_id,
                message_id=str(message["message_id"]) if "message_id" in message else None,
                user_name=from_user.get("first_name") or from_user.get("username"),
                timestamp=timestamp,
            )
        )
