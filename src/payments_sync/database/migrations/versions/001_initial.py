"""Initial migration - create catalog, media, mirror and settings tables

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'languages',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('locale_code', sa.String(16), nullable=False, unique=True),
    )

    op.create_table(
        'plugins',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('base_class', sa.String(255), nullable=False, unique=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('version', sa.String(50), nullable=True),
    )

    # Media pipeline
    op.create_table(
        'media_default_folders',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('entity', sa.String(255), nullable=False),
        sa.Column('association_fields_json', sa.Text(), nullable=True),
    )
    op.create_table(
        'media_folders',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('default_folder_id', sa.String(36), sa.ForeignKey('media_default_folders.id'), nullable=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('use_parent_configuration', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('configuration_json', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'media',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('media_folder_id', sa.String(36), sa.ForeignKey('media_folders.id'), nullable=True),
        sa.Column('title', sa.String(255), nullable=True),
        sa.Column('url', sa.Text(), nullable=True),
        sa.Column('mime_type', sa.String(255), nullable=True),
        sa.Column('file_extension', sa.String(50), nullable=True),
        sa.Column('file_size', sa.Integer(), nullable=True),
        sa.Column('content', sa.LargeBinary(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_media_media_folder_id', 'media', ['media_folder_id'])

    # Payment method catalog
    op.create_table(
        'payment_methods',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('handler_identifier', sa.String(255), nullable=True),
        sa.Column('plugin_id', sa.String(36), sa.ForeignKey('plugins.id'), nullable=True),
        sa.Column('position', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('media_id', sa.String(36), sa.ForeignKey('media.id'), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        'payment_method_translations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('payment_method_id', sa.String(36), sa.ForeignKey('payment_methods.id'), nullable=False),
        sa.Column('locale_code', sa.String(16), nullable=False),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.UniqueConstraint('payment_method_id', 'locale_code', name='uq_payment_method_translation_locale'),
    )
    op.create_index(
        'ix_payment_method_translations_payment_method_id',
        'payment_method_translations',
        ['payment_method_id'],
    )

    # Provider mirrors
    op.create_table(
        'payment_method_configurations',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('payment_method_configuration_id', sa.Integer(), nullable=False),
        sa.Column('payment_method_id', sa.String(36), sa.ForeignKey('payment_methods.id'), nullable=True),
        sa.Column('space_id', sa.Integer(), nullable=False),
        sa.Column('state', sa.String(20), nullable=False, server_default='INACTIVE'),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('data_json', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('space_id', 'payment_method_configuration_id', name='uq_payment_method_configuration'),
    )
    op.create_index('ix_payment_method_configurations_state', 'payment_method_configurations', ['state'])

    op.create_table(
        'refunds',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('refund_id', sa.Integer(), nullable=False),
        sa.Column('space_id', sa.Integer(), nullable=True),
        sa.Column('state', sa.String(50), nullable=True),
        sa.Column('transaction_id', sa.Integer(), nullable=True),
        sa.Column('data_json', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('space_id', 'refund_id', name='uq_refund_space'),
    )
    op.create_index('ix_refunds_refund_id', 'refunds', ['refund_id'])
    op.create_index('ix_refunds_transaction_id', 'refunds', ['transaction_id'])

    op.create_table(
        'transactions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('transaction_id', sa.Integer(), nullable=False, unique=True),
        sa.Column('space_id', sa.Integer(), nullable=False),
        sa.Column('sales_channel_id', sa.String(36), nullable=True),
        sa.Column('state', sa.String(50), nullable=True),
        sa.Column('data_json', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_transactions_sales_channel_id', 'transactions', ['sales_channel_id'])

    op.create_table(
        'plugin_settings',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('sales_channel_id', sa.String(36), nullable=True, unique=True),
        sa.Column('space_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('application_key', sa.String(255), nullable=False),
        sa.Column('base_url', sa.String(255), nullable=True),
    )


def downgrade() -> None:
    op.drop_index('ix_transactions_sales_channel_id', table_name='transactions')
    op.drop_index('ix_refunds_transaction_id', table_name='refunds')
    op.drop_index('ix_refunds_refund_id', table_name='refunds')
    op.drop_index('ix_payment_method_configurations_state', table_name='payment_method_configurations')
    op.drop_index('ix_payment_method_translations_payment_method_id', table_name='payment_method_translations')
    op.drop_index('ix_media_media_folder_id', table_name='media')

    # Drop tables, dependents first
    op.drop_table('plugin_settings')
    op.drop_table('transactions')
    op.drop_table('refunds')
    op.drop_table('payment_method_configurations')
    op.drop_table('payment_method_translations')
    op.drop_table('payment_methods')
    op.drop_table('media')
    op.drop_table('media_folders')
    op.drop_table('media_default_folders')
    op.drop_table('plugins')
    op.drop_table('languages')
