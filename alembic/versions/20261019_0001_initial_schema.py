"""Initial schema for rolling averages, candles, history, pools and staking

Revision ID: 0001
Revises: 
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from chainagg.data.models import FixedPoint


# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _ohlc_columns() -> list[sa.Column]:
    return [
        sa.Column(name, FixedPoint(), nullable=False)
        for name in (
            'open', 'high', 'low', 'close', 'volume',
            'open_oracle', 'high_oracle', 'low_oracle', 'close_oracle',
        )
    ]


def upgrade() -> None:
    # Rolling averages
    op.create_table(
        'rolling_averages',
        sa.Column('metric', sa.String(40), nullable=False),
        sa.Column('instrument', sa.String(66), nullable=False),
        sa.Column('value', FixedPoint(), nullable=False),
        sa.Column('index', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('metric', 'instrument')
    )
    op.create_table(
        'rolling_average_buckets',
        sa.Column('metric', sa.String(40), nullable=False),
        sa.Column('instrument', sa.String(66), nullable=False),
        sa.Column('index', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('value', FixedPoint(), nullable=False),
        sa.PrimaryKeyConstraint('metric', 'instrument', 'index')
    )

    # Candles
    op.create_table(
        'candle_singletons',
        sa.Column('instrument', sa.String(42), nullable=False),
        sa.Column('resolution', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        *_ohlc_columns(),
        sa.PrimaryKeyConstraint('instrument', 'resolution')
    )
    op.create_table(
        'candles',
        sa.Column('instrument', sa.String(42), nullable=False),
        sa.Column('resolution', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        *_ohlc_columns(),
        sa.PrimaryKeyConstraint('instrument', 'resolution', 'timestamp')
    )

    # Daily history and protocol configuration
    op.create_table(
        'daily_chunks',
        sa.Column('series', sa.String(40), nullable=False),
        sa.Column('index', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('size', sa.Integer(), nullable=False),
        sa.Column('value', FixedPoint(), nullable=False),
        sa.PrimaryKeyConstraint('series', 'index')
    )
    op.create_table(
        'protocol_config',
        sa.Column('id', sa.String(20), nullable=False),
        sa.Column('stable_coin', sa.String(42), nullable=False),
        sa.Column('gov_token', sa.String(42), nullable=False),
        sa.Column('price_feed', sa.String(42), nullable=False),
        sa.Column('storage_pool', sa.String(42), nullable=False),
        sa.Column('reserve_pool', sa.String(42), nullable=False),
        sa.Column('staking_ops', sa.String(42), nullable=False),
        sa.Column('token_manager', sa.String(42), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('total_value_locked_usd_history_index', sa.Integer(), nullable=False),
        sa.Column('total_value_minted_usd_history_index', sa.Integer(), nullable=False),
        sa.Column('reserve_pool_usd_history_index', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )

    # Tokens
    op.create_table(
        'tokens',
        sa.Column('address', sa.String(42), nullable=False),
        sa.Column('symbol', sa.String(64), nullable=False),
        sa.Column('decimals', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.BigInteger(), nullable=False),
        sa.Column('is_pool_token', sa.Boolean(), nullable=False),
        sa.Column('oracle_id', sa.String(66), nullable=True),
        sa.PrimaryKeyConstraint('address')
    )
    op.create_table(
        'oracles',
        sa.Column('oracle_id', sa.String(66), nullable=False),
        sa.Column('token', sa.String(42), nullable=False),
        sa.PrimaryKeyConstraint('oracle_id')
    )
    op.create_table(
        'collateral_token_meta',
        sa.Column('token', sa.String(42), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('supported_collateral_ratio', FixedPoint(), nullable=False),
        sa.Column('total_reserve', FixedPoint(), nullable=False),
        sa.Column('total_value_locked_usd', FixedPoint(), nullable=False),
        sa.Column('total_reserve_average', sa.String(80), nullable=True),
        sa.Column('total_value_locked_usd_average', sa.String(80), nullable=True),
        sa.PrimaryKeyConstraint('token')
    )
    op.create_table(
        'debt_token_meta',
        sa.Column('token', sa.String(42), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('total_supply_usd', FixedPoint(), nullable=False),
        sa.Column('total_reserve', FixedPoint(), nullable=False),
        sa.Column('total_supply_usd_average', sa.String(80), nullable=True),
        sa.Column('total_reserve_average', sa.String(80), nullable=True),
        sa.PrimaryKeyConstraint('token')
    )

    # Pools and swaps
    op.create_table(
        'pools',
        sa.Column('stable_coin', sa.String(42), nullable=False),
        sa.Column('non_stable_coin', sa.String(42), nullable=False),
        sa.Column('pair', sa.String(42), nullable=False),
        sa.Column('total_supply', FixedPoint(), nullable=False),
        sa.Column('liquidity_deposit_apy', FixedPoint(), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint('stable_coin', 'non_stable_coin')
    )
    op.create_table(
        'pool_liquidity',
        sa.Column('token', sa.String(42), nullable=False),
        sa.Column('other_token', sa.String(42), nullable=False),
        sa.Column('total_amount', FixedPoint(), nullable=False),
        sa.PrimaryKeyConstraint('token', 'other_token')
    )
    op.create_table(
        'pool_volume_chunks',
        sa.Column('pair', sa.String(42), nullable=False),
        sa.Column('index', sa.Integer(), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('value', FixedPoint(), nullable=False),
        sa.Column('fee_usd', FixedPoint(), nullable=False),
        sa.PrimaryKeyConstraint('pair', 'index')
    )
    op.create_table(
        'pool_volume_windows',
        sa.Column('pair', sa.String(42), nullable=False),
        sa.Column('window', sa.String(10), nullable=False),
        sa.Column('leading_index', sa.Integer(), nullable=False),
        sa.Column('last_index', sa.Integer(), nullable=False),
        sa.Column('value', FixedPoint(), nullable=False),
        sa.Column('fee_usd', FixedPoint(), nullable=False),
        sa.PrimaryKeyConstraint('pair', 'window')
    )
    op.create_table(
        'swap_records',
        sa.Column('tx_hash', sa.String(66), nullable=False),
        sa.Column('log_index', sa.Integer(), nullable=False),
        sa.Column('token', sa.String(42), nullable=False),
        sa.Column('borrower', sa.String(42), nullable=False),
        sa.Column('direction', sa.String(5), nullable=False),
        sa.Column('timestamp', sa.BigInteger(), nullable=False),
        sa.Column('size', FixedPoint(), nullable=False),
        sa.Column('total_price_in_stable', FixedPoint(), nullable=False),
        sa.Column('swap_fee', FixedPoint(), nullable=False),
        sa.PrimaryKeyConstraint('tx_hash', 'log_index')
    )

    # Staking
    op.create_table(
        'staking',
        sa.Column('id', sa.String(20), nullable=False),
        sa.Column('rewards_per_second', FixedPoint(), nullable=False),
        sa.Column('rewards_per_year_usd', FixedPoint(), nullable=False),
        sa.Column('total_alloc_points', FixedPoint(), nullable=False),
        sa.Column('pools', sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_table(
        'staking_pools',
        sa.Column('address', sa.String(42), nullable=False),
        sa.Column('alloc_points', FixedPoint(), nullable=False),
        sa.Column('total_deposit', FixedPoint(), nullable=False),
        sa.Column('total_deposit_usd', FixedPoint(), nullable=False),
        sa.Column('total_reward_usd', FixedPoint(), nullable=False),
        sa.Column('additional_rewards_per_year_usd', FixedPoint(), nullable=False),
        sa.Column('staking_apr', FixedPoint(), nullable=False),
        sa.Column('rewards', sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint('address')
    )
    op.create_table(
        'staking_pool_rewards',
        sa.Column('pool', sa.String(42), nullable=False),
        sa.Column('token', sa.String(42), nullable=False),
        sa.Column('rewards_per_second', FixedPoint(), nullable=False),
        sa.Column('rewards_per_year_usd', FixedPoint(), nullable=False),
        sa.PrimaryKeyConstraint('pool', 'token')
    )


def downgrade() -> None:
    op.drop_table('staking_pool_rewards')
    op.drop_table('staking_pools')
    op.drop_table('staking')
    op.drop_table('swap_records')
    op.drop_table('pool_volume_windows')
    op.drop_table('pool_volume_chunks')
    op.drop_table('pool_liquidity')
    op.drop_table('pools')
    op.drop_table('debt_token_meta')
    op.drop_table('collateral_token_meta')
    op.drop_table('oracles')
    op.drop_table('tokens')
    op.drop_table('protocol_config')
    op.drop_table('daily_chunks')
    op.drop_table('candles')
    op.drop_table('candle_singletons')
    op.drop_table('rolling_average_buckets')
    op.drop_table('rolling_averages')
