"""003: create plays table

Revision ID: 003
Revises: 002
Create Date: 2026-10-19
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE plays (
            id                  VARCHAR(64)     PRIMARY KEY,
            user_id             VARCHAR(64)     NOT NULL,
            category_id         SMALLINT        NOT NULL,
            stake_cents         BIGINT          NOT NULL,
            state               VARCHAR(20)     NOT NULL DEFAULT 'PURCHASED',
            is_win              BOOLEAN,
            tier_id             VARCHAR(64),
            prize_cents         BIGINT          NOT NULL DEFAULT 0,
            rtp_bps             INT,
            grid                JSONB,
            coverage_bps        INT             NOT NULL DEFAULT 0,
            credited_cents      BIGINT          NOT NULL DEFAULT 0,
            settlement_reason   VARCHAR(30),
            created_at          TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            revealed_at         TIMESTAMPTZ,
            settled_at          TIMESTAMPTZ,
            CONSTRAINT ck_plays_state CHECK (state IN ('PURCHASED', 'REVEALED', 'SETTLED')),
            CONSTRAINT ck_plays_stake_gt_0 CHECK (stake_cents > 0),
            CONSTRAINT ck_plays_prize_gte_0 CHECK (prize_cents >= 0),
            CONSTRAINT ck_plays_credited_gte_0 CHECK (credited_cents >= 0),
            CONSTRAINT ck_plays_coverage CHECK (coverage_bps BETWEEN 0 AND 10000),
            CONSTRAINT ck_plays_tier_iff_win CHECK (
                is_win IS NULL
                OR (is_win AND tier_id IS NOT NULL)
                OR (NOT is_win AND tier_id IS NULL AND prize_cents = 0)
            ),
            CONSTRAINT ck_plays_settlement_reason CHECK (
                settlement_reason IS NULL OR settlement_reason IN (
                    'CLIENT_COMPLETE', 'RECONCILED_HONOR',
                    'RECONCILED_FORFEIT', 'RECONCILED_REFUND'
                )
            ),
            CONSTRAINT ck_plays_settled_fields CHECK (
                (state = 'SETTLED') = (settled_at IS NOT NULL)
            )
        );
    """)
    op.execute("CREATE INDEX idx_plays_user_time ON plays (user_id, created_at DESC, id DESC);")
    op.execute("""
        CREATE INDEX idx_plays_unsettled
        ON plays (created_at)
        WHERE state <> 'SETTLED';
    """)
    op.execute("COMMENT ON TABLE plays IS 'One row per scratch card; outcome written once at purchase';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS plays CASCADE;")
