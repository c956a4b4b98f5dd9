"""Shared test fixtures and configuration."""

import os
import pytest
from typing import Any, Dict, List, Optional

# Set up test environment variables before importing modules
os.environ.setdefault("API_KEY", "test_api_key_12345")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from payments_sync.database import (
    Base,
    Language,
    PluginSettings,
    TransactionMirror,
    create_async_engine,
    get_async_session_factory,
)
from payments_sync.exceptions import MediaPipelineFailure
from payments_sync.provider import (
    CreationEntityState,
    PaymentMethodConfiguration,
    SimulatorProviderClient,
    Transaction,
    TransactionState,
)
from payments_sync.reconciliation import (
    ConfigSyncEngine,
    DownloadedFile,
    MediaDownloader,
    MediaService,
    RefundReconciler,
)
from payments_sync.settings import SettingsService

SPACE_ID = 4242
TRANSACTION_ID = 9001
ICON_BYTES = b"\x89PNG\r\n\x1a\nicon"


class StubDownloader(MediaDownloader):
    """Returns a fixed PNG for every URL except those listed in ``fail_urls``."""

    def __init__(self, fail_urls: Optional[List[str]] = None):
        self.fail_urls = set(fail_urls or [])
        self.requested: List[str] = []

    async def download(self, url: str) -> DownloadedFile:
        self.requested.append(url)
        if url in self.fail_urls:
            raise MediaPipelineFailure(f"Simulated download failure for {url}")
        return DownloadedFile(content=ICON_BYTES, mime_type="image/png", file_extension="png")


@pytest.fixture
def space_id() -> int:
    return SPACE_ID


@pytest.fixture
def transaction_id() -> int:
    return TRANSACTION_ID


@pytest.fixture(autouse=True)
def clear_provider_env(monkeypatch):
    """Keep real provider credentials from leaking into tests."""
    for name in ("PROVIDER_SPACE_ID", "PROVIDER_USER_ID", "PROVIDER_APPLICATION_KEY", "PROVIDER_BASE_URL"):
        monkeypatch.delenv(name, raising=False)


# Database fixtures
@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite database for testing."""
    engine = create_async_engine(
        database_url="sqlite+aiosqlite:///:memory:",
        echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a database session for testing."""
    session_factory = get_async_session_factory(db_engine)
    async with session_factory() as session:
        yield session


@pytest.fixture
async def languages(db_session):
    """Host languages en-GB and de-DE."""
    db_session.add_all([
        Language(name="English", locale_code="en-GB"),
        Language(name="Deutsch", locale_code="de-DE"),
    ])
    await db_session.commit()
    return ["de-DE", "en-GB"]


@pytest.fixture
def simulator() -> SimulatorProviderClient:
    return SimulatorProviderClient()


@pytest.fixture
async def settings_service(db_session, simulator, space_id) -> SettingsService:
    """Settings service with a default settings row, handing out the simulator."""
    db_session.add(PluginSettings(
        sales_channel_id=None,
        space_id=space_id,
        user_id=512,
        application_key="dGVzdC1rZXk=",
    ))
    await db_session.commit()
    return SettingsService(db_session, client_factory=lambda settings: simulator)


@pytest.fixture
def downloader() -> StubDownloader:
    return StubDownloader()


@pytest.fixture
def failing_downloader():
    """Factory for a downloader that fails for the given URLs."""
    def _make(*urls: str) -> StubDownloader:
        return StubDownloader(fail_urls=list(urls))
    return _make


@pytest.fixture
def make_configuration(space_id):
    """Factory for remote payment method configurations."""
    def _make(
        configuration_id: int,
        sort_order: int = 100,
        state: CreationEntityState = CreationEntityState.ACTIVE,
        name: Optional[str] = None,
        resolved_title: Optional[Dict[str, str]] = None,
        resolved_description: Optional[Dict[str, str]] = None,
        **extra: Any,
    ) -> PaymentMethodConfiguration:
        name = name or f"Method {configuration_id}"
        extra.setdefault("resolved_image_url", f"https://cdn.provider.test/icons/{configuration_id}.png")
        return PaymentMethodConfiguration(
            id=configuration_id,
            space_id=space_id,
            state=state,
            sort_order=sort_order,
            name=name,
            resolved_title=resolved_title if resolved_title is not None else {"en-GB": name},
            resolved_description=resolved_description or {},
            **extra,
        )
    return _make


@pytest.fixture
async def sync_engine(db_session, settings_service, downloader, languages) -> ConfigSyncEngine:
    return ConfigSyncEngine(
        db_session,
        settings_service=settings_service,
        media_service=MediaService(db_session, downloader),
    )


@pytest.fixture
def fulfilled_transaction(transaction_id, space_id) -> Transaction:
    return Transaction(
        id=transaction_id,
        linked_space_id=space_id,
        state=TransactionState.FULFILL,
        currency="EUR",
        authorization_amount=100.0,
        completed_amount=100.0,
        refunded_amount=0.0,
        merchant_reference="order-10001",
    )


@pytest.fixture
async def transaction_mirror(db_session, transaction_id, space_id) -> TransactionMirror:
    mirror = TransactionMirror(
        transaction_id=transaction_id,
        space_id=space_id,
        sales_channel_id=None,
        state=TransactionState.FULFILL.value,
    )
    db_session.add(mirror)
    await db_session.commit()
    return mirror


@pytest.fixture
async def refund_reconciler(db_session, settings_service, simulator, fulfilled_transaction) -> RefundReconciler:
    simulator.add_transaction(fulfilled_transaction.model_copy(deep=True))
    return RefundReconciler(db_session, settings_service)
