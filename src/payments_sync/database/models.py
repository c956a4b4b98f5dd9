"""SQLAlchemy models for the local catalog and the provider mirrors."""

import uuid
import json
from datetime import datetime
from typing import Optional, Dict, Any, List

from sqlalchemy import (
    Boolean,
    String,
    Integer,
    DateTime,
    ForeignKey,
    LargeBinary,
    Text,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, relationship, Mapped, mapped_column
import enum


def generate_id() -> str:
    return str(uuid.uuid4())


def _loads(value: Optional[str]) -> Optional[Any]:
    if value:
        return json.loads(value)
    return None


def _dumps(value: Optional[Any]) -> Optional[str]:
    if value is not None:
        return json.dumps(value)
    return None


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class MirrorState(str, enum.Enum):
    """State of a mirrored payment method configuration."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)


class Language(Base):
    """A language enabled on the host platform."""
    __tablename__ = "languages"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    locale_code: Mapped[str] = mapped_column(String(16), nullable=False, unique=True)


class Plugin(Base):
    """Installed plugin identity, looked up by its base class."""
    __tablename__ = "plugins"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    base_class: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    version: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)


class MediaDefaultFolder(Base):
    __tablename__ = "media_default_folders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    entity: Mapped[str] = mapped_column(String(255), nullable=False)
    association_fields_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    @property
    def association_fields(self) -> Optional[List[str]]:
        return _loads(self.association_fields_json)

    @association_fields.setter
    def association_fields(self, value: Optional[List[str]]) -> None:
        self.association_fields_json = _dumps(value)


class MediaFolder(TimestampMixin, Base):
    __tablename__ = "media_folders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    default_folder_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("media_default_folders.id"), nullable=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    use_parent_configuration: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    configuration_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    @property
    def configuration(self) -> Optional[Dict[str, Any]]:
        return _loads(self.configuration_json)

    @configuration.setter
    def configuration(self, value: Optional[Dict[str, Any]]) -> None:
        self.configuration_json = _dumps(value)


class Media(TimestampMixin, Base):
    """A stored media file (payment method icon)."""
    __tablename__ = "media"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    media_folder_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("media_folders.id"), nullable=True, index=True
    )
    title: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    mime_type: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    file_extension: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    file_size: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    content: Mapped[Optional[bytes]] = mapped_column(LargeBinary, nullable=True)


class PaymentMethod(TimestampMixin, Base):
    """Payment method record of the host catalog."""
    __tablename__ = "payment_methods"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    handler_identifier: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    plugin_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("plugins.id"), nullable=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    media_id: Mapped[Optional[str]] = mapped_column(String(36), ForeignKey("media.id"), nullable=True)

    translations: Mapped[List["PaymentMethodTranslation"]] = relationship(
        "PaymentMethodTranslation",
        back_populates="payment_method",
        cascade="all, delete-orphan",
        order_by="PaymentMethodTranslation.locale_code",
    )

    def get_translation(self, locale_code: str) -> Optional["PaymentMethodTranslation"]:
        for translation in self.translations:
            if translation.locale_code == locale_code:
                return translation
        return None


class PaymentMethodTranslation(Base):
    __tablename__ = "payment_method_translations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    payment_method_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("payment_methods.id"), nullable=False, index=True
    )
    locale_code: Mapped[str] = mapped_column(String(16), nullable=False)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    payment_method: Mapped["PaymentMethod"] = relationship("PaymentMethod", back_populates="translations")

    __table_args__ = (
        UniqueConstraint("payment_method_id", "locale_code", name="uq_payment_method_translation_locale"),
    )


class PaymentMethodConfigurationMirror(TimestampMixin, Base):
    """Local mirror of a provider payment method configuration."""
    __tablename__ = "payment_method_configurations"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    payment_method_configuration_id: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_method_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("payment_methods.id"), nullable=True
    )
    space_id: Mapped[int] = mapped_column(Integer, nullable=False)
    state: Mapped[str] = mapped_column(String(20), nullable=False, default=MirrorState.INACTIVE.value)
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    data_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    payment_method: Mapped[Optional["PaymentMethod"]] = relationship("PaymentMethod")

    __table_args__ = (
        UniqueConstraint("space_id", "payment_method_configuration_id", name="uq_payment_method_configuration"),
        Index("ix_payment_method_configurations_state", "state"),
    )

    @property
    def data(self) -> Optional[Dict[str, Any]]:
        """Provider payload as it was received."""
        return _loads(self.data_json)

    @data.setter
    def data(self, value: Optional[Dict[str, Any]]) -> None:
        self.data_json = _dumps(value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "payment_method_configuration_id": self.payment_method_configuration_id,
            "payment_method_id": self.payment_method_id,
            "space_id": self.space_id,
            "state": self.state,
            "sort_order": self.sort_order,
            "data": self.data,
        }


class RefundMirror(TimestampMixin, Base):
    """Local mirror of a provider refund."""
    __tablename__ = "refunds"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    refund_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    space_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    transaction_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, index=True)
    data_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("space_id", "refund_id", name="uq_refund_space"),
    )

    @property
    def data(self) -> Optional[Dict[str, Any]]:
        return _loads(self.data_json)

    @data.setter
    def data(self, value: Optional[Dict[str, Any]]) -> None:
        self.data_json = _dumps(value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "refund_id": self.refund_id,
            "space_id": self.space_id,
            "state": self.state,
            "transaction_id": self.transaction_id,
            "data": self.data,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }


class TransactionMirror(TimestampMixin, Base):
    """Local mirror of a provider transaction, linking it to a sales channel."""
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    transaction_id: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    space_id: Mapped[int] = mapped_column(Integer, nullable=False)
    sales_channel_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    state: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    data_json: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    @property
    def data(self) -> Optional[Dict[str, Any]]:
        return _loads(self.data_json)

    @data.setter
    def data(self, value: Optional[Dict[str, Any]]) -> None:
        self.data_json = _dumps(value)


class PluginSettings(Base):
    """Provider credentials per sales channel; a NULL sales channel is the default."""
    __tablename__ = "plugin_settings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_id)
    sales_channel_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, unique=True)
    space_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    application_key: Mapped[str] = mapped_column(String(255), nullable=False)
    base_url: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
