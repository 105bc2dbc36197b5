"""Agent identity store.

Persists, per bot instance, the remote session identity the relay resumes,
its timestamps, and the last delivery target (used for out-of-band pushes
such as heartbeats). The record lives in one JSON file and is rewritten on
every change.

Only the orchestrator mutates the store.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class MessageTarget(BaseModel):
    """Where the last user message came from."""

    channel: str
    chat_id: str
    message_id: str | None = None
    updated_at: str


class IdentityRecord(BaseModel):
    """Persisted identity record."""

    agent_id: str | None = None
    server_url: str | None = None
    agent_name: str | None = None
    created_at: str | None = None
    last_used_at: str | None = None
    last_message_target: MessageTarget | None = None


@dataclass(frozen=True)
class StoreInfo:
    """Read-only snapshot of the identity fields."""

    agent_id: str | None
    created_at: str | None
    last_used_at: str | None


class IdentityStore:
    """File-backed identity record."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._record = self._read()

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> IdentityRecord:
        if not self._path.exists():
            return IdentityRecord()
        try:
            content = self._path.read_text().strip()
            if not content:
                return IdentityRecord()
            return IdentityRecord.model_validate(json.loads(content))
        except (json.JSONDecodeError, ValidationError, OSError) as e:
            logger.error(f"Error reading identity store {self._path}: {e}")
            return IdentityRecord()

    def _write(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(self._record.model_dump_json(indent=2))
        tmp_path.replace(self._path)

    @property
    def agent_id(self) -> str | None:
        return self._record.agent_id

    @property
    def agent_name(self) -> str | None:
        return self._record.agent_name

    @property
    def server_url(self) -> str | None:
        return self._record.server_url

    def get_info(self) -> StoreInfo:
        """Return a snapshot of the identity and its timestamps."""
        return StoreInfo(
            agent_id=self._record.agent_id,
            created_at=self._record.created_at,
            last_used_at=self._record.last_used_at,
        )

    def set_agent(self, agent_id: str, server_url: str) -> None:
        """Persist the agent identity.

        Setting the identity already stored only refreshes ``last_used_at``
        (and ``server_url``); ``created_at`` changes only with the identity.
        """
        now = _now()
        if agent_id != self._record.agent_id:
            logger.info(f"Saving agent identity {agent_id} (server {server_url})")
            self._record.agent_id = agent_id
            self._record.created_at = now
        self._record.server_url = server_url
        self._record.last_used_at = now
        self._write()

    def set_agent_name(self, name: str) -> None:
        self._record.agent_name = name
        self._write()

    def touch(self) -> None:
        """Refresh ``last_used_at``."""
        self._record.last_used_at = _now()
        self._write()

    def reset(self) -> None:
        """Forget the agent identity so the next cycle creates a new session.

        Timestamps and the last message target are kept.
        """
        self._record.agent_id = None
        self._write()

    @property
    def last_message_target(self) -> MessageTarget | None:
        return self._record.last_message_target

    @last_message_target.setter
    def last_message_target(self, target: MessageTarget | None) -> None:
        self._record.last_message_target = target
        self._write()
