"""Shared fixtures for relay tests."""
from pathlib import Path

import pytest

from agent.core.profile import AgentProfile
from core.settings import AgentSettings, HeartbeatSettings, Settings, StoreSettings, TelegramSettings
from core.yaml_utils import clear_yaml_cache
from platforms.store import IdentityStore
from tests.fakes import FakeAdapter, FakeRuntime


@pytest.fixture(autouse=True)
def _fresh_yaml_cache():
    clear_yaml_cache()
    yield
    clear_yaml_cache()


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        agent=AgentSettings(
            name="TestBot",
            model="test-model",
            working_dir=tmp_path / "workspace",
            profile_path=tmp_path / "agent.yaml",
            init_timeout_s=0.2,
        ),
        store=StoreSettings(path=tmp_path / "store.json"),
        telegram=TelegramSettings(enabled=False, bot_token=""),
        heartbeat=HeartbeatSettings(enabled=False),
    )


@pytest.fixture
def store(settings: Settings) -> IdentityStore:
    return IdentityStore(settings.store.path)


@pytest.fixture
def runtime() -> FakeRuntime:
    return FakeRuntime()


@pytest.fixture
def adapter() -> FakeAdapter:
    return FakeAdapter()


@pytest.fixture
def skills_dir(tmp_path: Path) -> Path:
    skill = tmp_path / "bundled-skills" / "greeting"
    skill.mkdir(parents=True)
    (skill / "SKILL.md").write_text("---\nname: greeting\ndescription: Say hello\n---\nSay hello.\n")
    return tmp_path / "bundled-skills"


@pytest.fixture
def bot(settings, store, runtime, skills_dir):
    from platforms.bot import RelayBot

    return RelayBot(settings, store=store, runtime=runtime, profile=AgentProfile(), skills_dir=skills_dir)
