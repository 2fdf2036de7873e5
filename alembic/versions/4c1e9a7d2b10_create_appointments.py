"""Create the appointments table.

Revision ID: 4c1e9a7d2b10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4c1e9a7d2b10"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

appointment_type = sa.Enum("regular", "urgent", "follow", name="appointmenttype")
appointment_status = sa.Enum(
    "pending",
    "approved",
    "rejected",
    "rescheduled",
    "in-progress",
    "completed",
    "cancelled",
    name="appointmentstatus",
)


def upgrade() -> None:
    op.create_table(
        "appointments",
        sa.Column("appointment_id", sa.String(length=26), nullable=False),
        sa.Column("patient_id", sa.String(length=64)),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("phone", sa.String(length=32), nullable=False),
        sa.Column("date", sa.String(length=10), nullable=False),
        sa.Column("time", sa.String(length=5), nullable=False),
        sa.Column("type", appointment_type, nullable=False, server_default="regular"),
        sa.Column("status", appointment_status, server_default="pending"),
        sa.Column("notes", sa.Text()),
        sa.Column("doctor_notes", sa.Text()),
        sa.Column("resolved_at", sa.DateTime(timezone=True)),
        sa.Column("resolved_by", sa.String(length=120)),
        sa.Column("reschedule_reason", sa.Text()),
        sa.Column("rejection_reason", sa.Text()),
        sa.Column("requires_follow_up", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("follow_up_of_id", sa.String(length=26)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("appointment_id", name="pk_appointments"),
        sa.ForeignKeyConstraint(
            ["follow_up_of_id"],
            ["appointments.appointment_id"],
            name="fk_appointments_follow_up_of_id_appointments",
            ondelete="SET NULL",
        ),
        sa.UniqueConstraint("name", "date", "time", name="uq_appointments_slot"),
    )
    op.create_index("ix_appointments_patient_date", "appointments", ["patient_id", "date"])
    op.create_index("ix_appointments_status", "appointments", ["status"])
    op.create_index("ix_appointments_date_status", "appointments", ["date", "status"])


def downgrade() -> None:
    op.drop_index("ix_appointments_date_status", table_name="appointments")
    op.drop_index("ix_appointments_status", table_name="appointments")
    op.drop_index("ix_appointments_patient_date", table_name="appointments")
    op.drop_table("appointments")
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        appointment_status.drop(bind, checkfirst=True)
        appointment_type.drop(bind, checkfirst=True)
