"""
Offline walkthrough: mirror payment method configurations from the in-memory
provider simulator into a throwaway SQLite catalog, then refund a transaction.
No network access or provider credentials are needed.
"""
import asyncio

from payments_sync.database import (
    Base,
    Language,
    PluginSettings,
    TransactionMirror,
    create_async_engine,
    get_async_session_factory,
)
from payments_sync.provider import (
    CreationEntityState,
    PaymentMethodConfiguration,
    SimulatorProviderClient,
    Transaction,
    TransactionState,
)
from payments_sync.reconciliation import ConfigSyncEngine, RefundReconciler
from payments_sync.settings import SettingsService

SPACE_ID = 1


def build_simulator() -> SimulatorProviderClient:
    simulator = SimulatorProviderClient()
    simulator.add_configuration(PaymentMethodConfiguration(
        id=101,
        space_id=SPACE_ID,
        state=CreationEntityState.ACTIVE,
        sort_order=110,
        name="Invoice",
        resolved_title={"en-GB": "Invoice", "de-DE": "Rechnung"},
    ))
    simulator.add_configuration(PaymentMethodConfiguration(
        id=102,
        space_id=SPACE_ID,
        state=CreationEntityState.INACTIVE,
        sort_order=120,
        name="Prepayment",
    ))
    simulator.add_transaction(Transaction(
        id=5001,
        linked_space_id=SPACE_ID,
        state=TransactionState.FULFILL,
        currency="CHF",
        authorization_amount=80.0,
        merchant_reference="order-5001",
    ))
    return simulator


async def run():
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    simulator = build_simulator()
    async with get_async_session_factory(engine)() as session:
        session.add_all([
            Language(name="English", locale_code="en-GB"),
            Language(name="Deutsch", locale_code="de-DE"),
            PluginSettings(space_id=SPACE_ID, user_id=1, application_key="ZXhhbXBsZQ=="),
            TransactionMirror(transaction_id=5001, space_id=SPACE_ID),
        ])
        await session.commit()

        settings_service = SettingsService(session, client_factory=lambda settings: simulator)

        # Icons are not downloaded: the simulator's configurations carry no image URL
        result = await ConfigSyncEngine(session, settings_service).synchronize()
        print("Synchronization:", result.model_dump())

        transaction = await simulator.read_transaction(SPACE_ID, 5001)
        refund = await RefundReconciler(session, settings_service).create(transaction, 20.0)
        print("Refund:", refund.to_payload() if refund else None)

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(run())
