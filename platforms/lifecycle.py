"""Session lifecycle: create a new agent session or resume the stored one.

Option rules:
- Both paths share the same base options (unattended permission mode,
  allowed tools, working directory, system prompt).
- Only creation carries the model and the initial memory blocks. Resume
  options leave both unset; the runtime decides how a resumed session gets
  them back.

When a created session reveals its identity, it is persisted and first-time
setup (display name, skill installation) runs once.
"""

import logging
from pathlib import Path

from agent.core.memory import load_memory_blocks
from agent.core.options import BYPASS_PERMISSIONS, SessionOptions
from agent.core.profile import AgentProfile
from agent.core.session import AgentRuntime, Session
from agent.discovery.skills import install_skills
from core.settings import AgentSettings
from platforms.store import IdentityStore

logger = logging.getLogger(__name__)


class SessionLifecycle:
    """Decides create-vs-resume and persists newly assigned identities."""

    def __init__(
        self,
        store: IdentityStore,
        runtime: AgentRuntime,
        agent_settings: AgentSettings,
        profile: AgentProfile,
        skills_dir: Path | None = None,
    ) -> None:
        self._store = store
        self._runtime = runtime
        self._settings = agent_settings
        self._profile = profile
        self._skills_dir = skills_dir

    def base_options(self) -> SessionOptions:
        return SessionOptions(
            permission_mode=BYPASS_PERMISSIONS,
            allowed_tools=list(self._profile.allowed_tools),
            cwd=self._settings.working_dir,
            system_prompt=self._profile.system_prompt,
        )

    def open_session(self) -> Session:
        """Resume the stored identity, or create a new session if there is none."""
        base = self.base_options()
        if agent_id := self._store.agent_id:
            return self._runtime.resume_session(agent_id, base)

        memory = load_memory_blocks(self._settings.name, self._profile.memory)
        return self._runtime.create_session(base.for_creation(self._settings.model, memory))

    def persist_identity(self, session: Session) -> bool:
        """Persist the session's identity if it differs from the stored one.

        Returns:
            True if a new identity was stored.
        """
        identity = session.identity
        if not identity or identity == self._store.agent_id:
            return False

        is_new_agent = self._store.agent_id is None
        self._store.set_agent(identity, self._settings.server_url)
        logger.info(f"Saved agent ID {identity} on server {self._settings.server_url}")

        if is_new_agent:
            self._setup_new_agent()
        return True

    def _setup_new_agent(self) -> None:
        """First-time setup for a newly created agent. Failures are logged only."""
        try:
            self._store.set_agent_name(self._settings.name)
        except OSError as e:
            logger.warning(f"Failed to record agent name: {e}")

        try:
            if self._skills_dir is not None:
                install_skills(self._settings.working_dir, self._skills_dir)
            else:
                install_skills(self._settings.working_dir)
        except OSError as e:
            logger.warning(f"Failed to install skills: {e}")
