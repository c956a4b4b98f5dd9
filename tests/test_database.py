"""Tests for database models and repository layer."""

import pytest

from payments_sync.database import (
    Criteria,
    Language,
    LanguageRepository,
    MediaDefaultFolder,
    MirrorState,
    PaymentMethod,
    PaymentMethodConfigurationMirror,
    PaymentMethodConfigurationRepository,
    PaymentMethodRepository,
    PluginRepository,
    RefundMirror,
    SettingsRepository,
    PluginSettings,
    TransactionMirror,
    TransactionRepository,
    compact,
)
from payments_sync.exceptions import PersistenceFailure, RecordNotFound


class TestMirrorModels:
    """Tests for the mirror models."""

    async def test_configuration_data_property(self, db_session):
        """Test that the provider payload round-trips through data_json."""
        mirror = PaymentMethodConfigurationMirror(
            payment_method_configuration_id=1,
            space_id=10,
            state=MirrorState.ACTIVE.value,
        )
        mirror.data = {"id": 1, "resolvedTitle": {"en-GB": "Card"}}
        db_session.add(mirror)
        await db_session.flush()

        assert mirror.id is not None
        assert mirror.data == {"id": 1, "resolvedTitle": {"en-GB": "Card"}}
        assert mirror.data_json is not None
        assert mirror.created_at is not None

    async def test_configuration_to_dict(self, db_session):
        mirror = PaymentMethodConfigurationMirror(
            payment_method_configuration_id=2,
            space_id=10,
            sort_order=5,
        )
        db_session.add(mirror)
        await db_session.flush()

        result = mirror.to_dict()

        assert result["payment_method_configuration_id"] == 2
        assert result["state"] == MirrorState.INACTIVE.value
        assert result["sort_order"] == 5
        assert result["data"] is None

    async def test_refund_to_dict(self, db_session):
        mirror = RefundMirror(refund_id=3, space_id=10, state="SUCCESSFUL", transaction_id=4)
        db_session.add(mirror)
        await db_session.flush()

        result = mirror.to_dict()

        assert result["refund_id"] == 3
        assert result["transaction_id"] == 4
        assert result["created_at"] is not None

    async def test_default_folder_association_fields(self, db_session):
        folder = MediaDefaultFolder(entity="payment_method_1")
        folder.association_fields = []
        db_session.add(folder)
        await db_session.flush()

        assert folder.association_fields_json == "[]"


class TestCriteria:
    """Tests for search criteria."""

    async def test_filter_and_sorting(self, db_session):
        repo = PaymentMethodConfigurationRepository(db_session)
        await repo.upsert([
            {"payment_method_configuration_id": 1, "space_id": 1, "sort_order": 30},
            {"payment_method_configuration_id": 2, "space_id": 1, "sort_order": 10},
            {"payment_method_configuration_id": 3, "space_id": 2, "sort_order": 20},
        ])

        found = await repo.search(
            Criteria().add_filter("space_id", 1).add_sorting("sort_order")
        )

        assert [m.payment_method_configuration_id for m in found] == [2, 1]

    async def test_descending_sorting_and_limit(self, db_session):
        repo = PaymentMethodConfigurationRepository(db_session)
        await repo.upsert([
            {"payment_method_configuration_id": i, "space_id": 1, "sort_order": i} for i in range(1, 5)
        ])

        criteria = Criteria().add_sorting("sort_order", descending=True)
        criteria.limit = 2
        found = await repo.search(criteria)

        assert [m.sort_order for m in found] == [4, 3]

    async def test_none_filter_matches_null(self, db_session):
        db_session.add_all([
            PluginSettings(sales_channel_id=None, space_id=1, user_id=1, application_key="a2V5"),
            PluginSettings(sales_channel_id="channel-1", space_id=2, user_id=1, application_key="a2V5"),
        ])
        await db_session.flush()

        settings = await SettingsRepository(db_session).get_for_sales_channel(None)

        assert settings.space_id == 1

    def test_association_added_once(self):
        criteria = Criteria().add_association("translations").add_association("translations")

        assert criteria.associations == ["translations"]

    async def test_unknown_filter_field(self, db_session):
        with pytest.raises(ValueError):
            await LanguageRepository(db_session).search(Criteria().add_filter("nope", 1))


class TestEntityRepository:
    """Tests for generic upsert and update."""

    def test_compact_only_drops_none(self):
        assert compact({"a": None, "b": 0, "c": False, "d": "", "e": []}) == {
            "b": 0, "c": False, "d": "", "e": [],
        }

    async def test_upsert_generates_id(self, db_session):
        entities = await LanguageRepository(db_session).upsert([{"name": "English", "locale_code": "en-GB"}])

        assert entities[0].id is not None

    async def test_upsert_does_not_overwrite_with_none(self, db_session):
        repo = PaymentMethodConfigurationRepository(db_session)
        await repo.upsert([{
            "id": "mirror-1",
            "payment_method_configuration_id": 1,
            "space_id": 1,
            "sort_order": 40,
            "data": {"id": 1},
        }])

        await repo.upsert([{"id": "mirror-1", "sort_order": None, "data": None, "state": "ACTIVE"}])

        mirror = await repo.get("mirror-1")
        assert mirror.sort_order == 40
        assert mirror.data == {"id": 1}
        assert mirror.state == "ACTIVE"

    async def test_upsert_writes_falsy_values(self, db_session):
        repo = PaymentMethodRepository(db_session)
        await repo.upsert([{"id": "pm-1", "active": True, "position": 5}])

        await repo.upsert([{"id": "pm-1", "active": False, "position": 0}])

        payment_method = await repo.get("pm-1")
        assert payment_method.active is False
        assert payment_method.position == 0

    async def test_upsert_unknown_field(self, db_session):
        with pytest.raises(PersistenceFailure):
            await LanguageRepository(db_session).upsert([{"name": "English", "colour": "red"}])

    async def test_upsert_constraint_violation(self, db_session):
        repo = LanguageRepository(db_session)
        await repo.upsert([{"name": "English", "locale_code": "en-GB"}])

        with pytest.raises(PersistenceFailure):
            await repo.upsert([{"name": "British", "locale_code": "en-GB"}])

    async def test_update_missing_record(self, db_session):
        with pytest.raises(RecordNotFound):
            await PaymentMethodRepository(db_session).update([{"id": "missing", "active": False}])

    async def test_update_existing_record(self, db_session):
        repo = PaymentMethodRepository(db_session)
        await repo.upsert([{"id": "pm-2", "active": True}])

        await repo.update([{"id": "pm-2", "active": False}])

        assert (await repo.get("pm-2")).active is False


class TestPaymentMethodRepository:
    """Tests for payment methods with nested translations."""

    async def test_translations_created_and_updated(self, db_session):
        repo = PaymentMethodRepository(db_session)
        await repo.upsert([{
            "id": "pm-1",
            "translations": {
                "en-GB": {"name": "Invoice", "description": "Pay later"},
                "de-DE": {"name": "Rechnung", "description": "Später zahlen"},
            },
        }])

        await repo.upsert([{
            "id": "pm-1",
            "translations": {"de-DE": {"name": "Kauf auf Rechnung", "description": None}},
        }])

        payment_method = await repo.get("pm-1")
        assert len(payment_method.translations) == 2
        assert payment_method.get_translation("de-DE").name == "Kauf auf Rechnung"
        assert payment_method.get_translation("de-DE").description == "Später zahlen"
        assert payment_method.get_translation("en-GB").name == "Invoice"

    async def test_get_translation_missing_locale(self, db_session):
        payment_method = PaymentMethod(id="pm-3", translations=[])
        db_session.add(payment_method)
        await db_session.flush()

        loaded = await PaymentMethodRepository(db_session).get("pm-3")
        assert loaded.get_translation("fr-FR") is None


class TestSpecializedRepositories:
    """Tests for lookups by business key."""

    async def test_get_by_configuration_id(self, db_session):
        repo = PaymentMethodConfigurationRepository(db_session)
        await repo.upsert([
            {"payment_method_configuration_id": 9, "space_id": 1},
            {"payment_method_configuration_id": 9, "space_id": 2},
        ])

        mirror = await repo.get_by_configuration_id(2, 9)

        assert mirror.space_id == 2
        assert await repo.get_by_configuration_id(3, 9) is None

    async def test_list_active(self, db_session):
        repo = PaymentMethodConfigurationRepository(db_session)
        await repo.upsert([
            {"payment_method_configuration_id": 1, "space_id": 1, "state": "ACTIVE"},
            {"payment_method_configuration_id": 2, "space_id": 1, "state": "INACTIVE"},
            {"payment_method_configuration_id": 3, "space_id": 2, "state": "ACTIVE"},
        ])

        active = await repo.list_active(1)

        assert [m.payment_method_configuration_id for m in active] == [1]

    async def test_get_transaction_not_mirrored(self, db_session):
        with pytest.raises(RecordNotFound):
            await TransactionRepository(db_session).get_by_transaction_id(404)

    async def test_get_transaction(self, db_session):
        db_session.add(TransactionMirror(transaction_id=5, space_id=1, sales_channel_id="channel-1"))
        await db_session.flush()

        mirror = await TransactionRepository(db_session).get_by_transaction_id(5)

        assert mirror.sales_channel_id == "channel-1"

    async def test_resolve_plugin_id_is_stable(self, db_session):
        repo = PluginRepository(db_session)

        first = await repo.resolve_plugin_id("vendor.module.SomePlugin")
        second = await repo.resolve_plugin_id("vendor.module.SomePlugin")

        assert first == second
        plugin = await repo.get(first)
        assert plugin.name == "SomePlugin"

    async def test_get_locale_codes_sorted(self, db_session):
        db_session.add_all([
            Language(name="Deutsch", locale_code="de-DE"),
            Language(name="English", locale_code="en-GB"),
            Language(name="Français", locale_code="fr-CH"),
        ])
        await db_session.flush()

        assert await LanguageRepository(db_session).get_locale_codes() == ["de-DE", "en-GB", "fr-CH"]
