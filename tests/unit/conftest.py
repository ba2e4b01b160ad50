"""Fixtures for unit tests."""

from typing import Generator

import pytest
import structlog

from tests.unit.fakes import FakeGitHubAdapter
from vocoder_sync.configuration.models import AppIdentity
from vocoder_sync.synchronize.committer import BranchCommitter
from vocoder_sync.synchronize.driver import SyncOrchestrator
from vocoder_sync.synchronize.repository_config import ConfigResolver
from vocoder_sync.synchronize.translation import MockTranslationProvider, TranslationGateway

CONFIG_FILE_PATH = ".vocoder/config.json"
SOURCE_FILE = "src/locales/en.json"


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def fake_github() -> FakeGitHubAdapter:
    """Empty in-memory repository whose default branch is main."""
    return FakeGitHubAdapter()


@pytest.fixture
def app_identity() -> AppIdentity:
    """Identity the tests commit as."""
    return AppIdentity(name="Vocoder Localization", email="bot@vocoder.app")


@pytest.fixture
def orchestrator(fake_github: FakeGitHubAdapter, app_identity: AppIdentity) -> SyncOrchestrator:
    """Orchestrator wired to the in-memory repository with mock translations."""
    resolver = ConfigResolver(fake_github, CONFIG_FILE_PATH)
    gateway = TranslationGateway(MockTranslationProvider())
    committer = BranchCommitter(fake_github, app_identity=app_identity)
    return SyncOrchestrator(fake_github, resolver, gateway, committer, status_context=app_identity.name)
