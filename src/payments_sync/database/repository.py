"""Repository layer for the local catalog and mirror tables."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Tuple, Type, TypeVar, Generic

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..exceptions import PersistenceFailure, RecordNotFound
from .models import (
    Base,
    Language,
    Media,
    MediaDefaultFolder,
    MediaFolder,
    MirrorState,
    PaymentMethod,
    PaymentMethodConfigurationMirror,
    PaymentMethodTranslation,
    Plugin,
    PluginSettings,
    RefundMirror,
    TransactionMirror,
    generate_id,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=Base)


def compact(record: Dict[str, Any]) -> Dict[str, Any]:
    """Drop keys whose value is None so they do not overwrite stored values."""
    return {key: value for key, value in record.items() if value is not None}


@dataclass
class Criteria:
    """Search criteria: equality filters, eager-loaded associations, sorting and limit."""
    filters: Dict[str, Any] = field(default_factory=dict)
    associations: List[str] = field(default_factory=list)
    sorting: List[Tuple[str, bool]] = field(default_factory=list)
    limit: Optional[int] = None

    def add_filter(self, field_name: str, value: Any) -> "Criteria":
        self.filters[field_name] = value
        return self

    def add_association(self, name: str) -> "Criteria":
        if name not in self.associations:
            self.associations.append(name)
        return self

    def add_sorting(self, field_name: str, descending: bool = False) -> "Criteria":
        self.sorting.append((field_name, descending))
        return self


class EntityRepository(Generic[ModelT]):
    """Generic search/upsert/update access to one entity kind.

    ``upsert`` and ``update`` take plain dicts keyed by attribute name. Keys
    holding None are ignored, so partial records only touch the fields they
    carry. Writes are flushed, never committed; the caller owns the transaction.
    """

    model: Type[ModelT]
    default_associations: Tuple[str, ...] = ()

    def __init__(self, session: AsyncSession):
        """Initialize the repository with a database session.

        Args:
            session: AsyncSession instance for database operations.
        """
        self.session = session

    @property
    def entity_name(self) -> str:
        return self.model.__tablename__

    def _attribute(self, name: str) -> Any:
        attribute = getattr(self.model, name, None)
        if attribute is None:
            raise ValueError(f"{self.model.__name__} has no field '{name}'")
        return attribute

    def _build_query(self, criteria: Criteria):
        stmt = select(self.model)
        for name, value in criteria.filters.items():
            column = self._attribute(name)
            stmt = stmt.where(column.is_(None) if value is None else column == value)
        for name in (*self.default_associations, *criteria.associations):
            stmt = stmt.options(selectinload(self._attribute(name)))
        for name, descending in criteria.sorting:
            column = self._attribute(name)
            stmt = stmt.order_by(column.desc() if descending else column)
        if criteria.limit is not None:
            stmt = stmt.limit(criteria.limit)
        return stmt

    async def search(self, criteria: Optional[Criteria] = None) -> List[ModelT]:
        """Return all entities matching the criteria."""
        result = await self.session.execute(self._build_query(criteria or Criteria()))
        return list(result.scalars().unique().all())

    async def first(self, criteria: Criteria) -> Optional[ModelT]:
        criteria.limit = 1
        entities = await self.search(criteria)
        return entities[0] if entities else None

    async def get(self, entity_id: str) -> Optional[ModelT]:
        return await self.first(Criteria().add_filter("id", entity_id))

    def _is_writable(self, key: str) -> bool:
        if key in self.model.__mapper__.column_attrs:
            return True
        return isinstance(getattr(self.model, key, None), property)

    async def _apply(self, entity: ModelT, data: Dict[str, Any]) -> None:
        for key, value in data.items():
            if not self._is_writable(key):
                raise PersistenceFailure(f"Unknown field '{key}' for {self.entity_name}")
            setattr(entity, key, value)

    async def upsert(self, records: List[Dict[str, Any]]) -> List[ModelT]:
        """Insert records without a stored row, update the others in place.

        Args:
            records: Dicts keyed by attribute name; ``id`` selects the row and is
                generated when missing.

        Returns:
            The written entities.

        Raises:
            PersistenceFailure: On unknown fields or database errors.
        """
        entities: List[ModelT] = []
        try:
            for record in records:
                data = compact(record)
                entity_id = data.pop("id", None) or generate_id()
                entity = await self.get(entity_id)
                if entity is None:
                    entity = self.model(id=entity_id)
                    self.session.add(entity)
                await self._apply(entity, data)
                entities.append(entity)
            await self.session.flush()
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Failed to upsert {self.entity_name}: {e}") from e

        logger.debug(f"Upserted {len(entities)} {self.entity_name} record(s)")
        return entities

    async def update(self, records: List[Dict[str, Any]]) -> List[ModelT]:
        """Update existing rows.

        Raises:
            RecordNotFound: If a record's id has no stored row.
            PersistenceFailure: On unknown fields or database errors.
        """
        entities: List[ModelT] = []
        try:
            for record in records:
                data = compact(record)
                entity_id = data.pop("id", None)
                entity = await self.get(entity_id) if entity_id else None
                if entity is None:
                    raise RecordNotFound(f"{self.entity_name} '{entity_id}' does not exist")
                await self._apply(entity, data)
                entities.append(entity)
            await self.session.flush()
        except SQLAlchemyError as e:
            raise PersistenceFailure(f"Failed to update {self.entity_name}: {e}") from e
        return entities


class LanguageRepository(EntityRepository[Language]):
    model = Language

    async def get_locale_codes(self) -> List[str]:
        """Locale codes of every language configured on the host."""
        languages = await self.search(Criteria().add_sorting("locale_code"))
        return [language.locale_code for language in languages]


class PluginRepository(EntityRepository[Plugin]):
    model = Plugin

    async def resolve_plugin_id(self, base_class: str, name: Optional[str] = None) -> str:
        """Return the id of the plugin owning ``base_class``, registering it on first use."""
        plugin = await self.first(Criteria().add_filter("base_class", base_class))
        if plugin is None:
            plugin = Plugin(base_class=base_class, name=name or base_class.rsplit(".", 1)[-1])
            self.session.add(plugin)
            await self.session.flush()
            logger.info(f"Registered plugin {plugin.name} ({plugin.id})")
        return plugin.id


class PaymentMethodRepository(EntityRepository[PaymentMethod]):
    """Payment methods; ``translations`` is written as ``{locale: {name, description}}``."""
    model = PaymentMethod
    default_associations = ("translations",)

    async def _apply(self, entity: PaymentMethod, data: Dict[str, Any]) -> None:
        translations = data.pop("translations", None)
        await super()._apply(entity, data)
        for locale_code, values in (translations or {}).items():
            translation = entity.get_translation(locale_code)
            if translation is None:
                translation = PaymentMethodTranslation(locale_code=locale_code)
                entity.translations.append(translation)
            for key, value in compact(values).items():
                setattr(translation, key, value)


class PaymentMethodConfigurationRepository(EntityRepository[PaymentMethodConfigurationMirror]):
    model = PaymentMethodConfigurationMirror

    async def get_by_configuration_id(
        self,
        space_id: int,
        payment_method_configuration_id: int,
    ) -> Optional[PaymentMethodConfigurationMirror]:
        """Find the mirror of a remote configuration by its business key."""
        return await self.first(
            Criteria()
            .add_filter("space_id", space_id)
            .add_filter("payment_method_configuration_id", payment_method_configuration_id)
        )

    async def list_active(self, space_id: int) -> List[PaymentMethodConfigurationMirror]:
        return await self.search(
            Criteria()
            .add_filter("space_id", space_id)
            .add_filter("state", MirrorState.ACTIVE.value)
            .add_sorting("sort_order")
        )


class RefundRepository(EntityRepository[RefundMirror]):
    model = RefundMirror

    async def get_by_refund_id(
        self,
        refund_id: int,
        space_id: Optional[int] = None,
    ) -> Optional[RefundMirror]:
        criteria = Criteria().add_filter("refund_id", refund_id)
        if space_id is not None:
            criteria.add_filter("space_id", space_id)
        return await self.first(criteria)


class TransactionRepository(EntityRepository[TransactionMirror]):
    model = TransactionMirror

    async def get_by_transaction_id(self, transaction_id: int) -> TransactionMirror:
        """Return the mirror of a provider transaction.

        Raises:
            RecordNotFound: If the transaction has never been mirrored.
        """
        transaction = await self.first(Criteria().add_filter("transaction_id", transaction_id))
        if transaction is None:
            raise RecordNotFound(f"Transaction {transaction_id} is not mirrored locally")
        return transaction


class MediaRepository(EntityRepository[Media]):
    model = Media


class MediaFolderRepository(EntityRepository[MediaFolder]):
    model = MediaFolder


class MediaDefaultFolderRepository(EntityRepository[MediaDefaultFolder]):
    model = MediaDefaultFolder


class SettingsRepository(EntityRepository[PluginSettings]):
    model = PluginSettings

    async def get_for_sales_channel(self, sales_channel_id: Optional[str]) -> Optional[PluginSettings]:
        return await self.first(Criteria().add_filter("sales_channel_id", sales_channel_id))
