"""repair string-encoded user preferences

Older writers stored the preferences document as JSON text inside the JSONB
column (sometimes encoded twice). Rewrite those rows to the object form.

A database built from these revisions alone has nothing to repair, since 001
creates the column NOT NULL with an object default. This revision exists for
databases imported from the legacy schema and stamped at 001.

Revision ID: 002
Revises: 001
Create Date: 2026-10-18 09:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from swiftnotes.services.preference_rules import normalize_stored

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


user_profiles = sa.table(
    'user_profiles',
    sa.column('user_id', postgresql.UUID(as_uuid=False)),
    sa.column('preferences', postgresql.JSONB(astext_type=sa.Text())),
)


def upgrade() -> None:
    bind = op.get_bind()
    rows = bind.execute(
        sa.text(
            "SELECT user_id, preferences FROM user_profiles "
            "WHERE preferences IS NULL OR jsonb_typeof(preferences) <> 'object'"
        )
    ).fetchall()

    for user_id, preferences in rows:
        bind.execute(
            user_profiles.update()
            .where(user_profiles.c.user_id == user_id)
            .values(preferences=normalize_stored(preferences))
        )


def downgrade() -> None:
    # Data repair only; the original encodings are not worth restoring
    pass
