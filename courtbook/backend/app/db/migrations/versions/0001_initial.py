from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    user_role = postgresql.ENUM("user", "admin", name="userrole")
    user_role.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=32)),
        sa.Column("password_hash", sa.String(length=255)),
        sa.Column("role", user_role, server_default="user"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "courts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("short_name", sa.String(length=32)),
        sa.Column("court_type", sa.String(length=64), index=True),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("base_price", sa.Numeric(10, 2), server_default="0"),
        sa.Column("rating", sa.Numeric(3, 1), server_default="0"),
        sa.Column("dimensions", sa.String(length=64)),
        sa.Column("image_url", sa.String(length=512)),
        sa.Column("metadata", sa.JSON()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "coaches",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("experience_years", sa.Integer(), server_default="0"),
        sa.Column("hourly_rate", sa.Numeric(10, 2), server_default="0"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("notes", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "equipment",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("sku", sa.String(length=64), unique=True),
        sa.Column("total_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("price_per_unit", sa.Numeric(10, 2), server_default="0"),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("total_count >= 0", name="ck_equipment_total_count_non_negative"),
    )

    rule_kind = postgresql.ENUM("multiplier", "fixed", name="rulekind")
    rule_kind.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "pricing_rules",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true(), index=True),
        sa.Column("kind", rule_kind, server_default="multiplier"),
        sa.Column("value", sa.Numeric(10, 4), nullable=False),
        sa.Column("court_types", sa.JSON()),
        sa.Column("court_ids", sa.JSON()),
        sa.Column("window_start", sa.String(length=5)),
        sa.Column("window_end", sa.String(length=5)),
        sa.Column("priority", sa.Integer(), server_default="100"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    booking_status = postgresql.ENUM("confirmed", "cancelled", "waitlist", name="bookingstatus")
    booking_status.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "bookings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE")),
        sa.Column("court_id", sa.Integer(), sa.ForeignKey("courts.id", ondelete="CASCADE")),
        sa.Column("coach_id", sa.Integer(), sa.ForeignKey("coaches.id", ondelete="SET NULL")),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", booking_status, server_default="confirmed"),
        sa.Column("base_price", sa.Numeric(10, 2), server_default="0"),
        sa.Column("price_after_rules", sa.Numeric(10, 2), server_default="0"),
        sa.Column("rule_adjustments", sa.JSON()),
        sa.Column("equipment_fee", sa.Numeric(10, 2), server_default="0"),
        sa.Column("coach_fee", sa.Numeric(10, 2), server_default="0"),
        sa.Column("total", sa.Numeric(10, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("cancelled_at", sa.DateTime(timezone=True)),
        sa.Column("cancelled_by", sa.Integer()),
        sa.CheckConstraint("end_time > start_time", name="ck_booking_end_after_start"),
    )
    op.create_index("ix_bookings_status", "bookings", ["status"])
    op.create_index("ix_booking_court_window", "bookings", ["court_id", "start_time", "end_time"])
    op.create_index("ix_booking_coach_window", "bookings", ["coach_id", "start_time", "end_time"])

    # Last line of defence against double booking: confirmed windows on the same
    # court (or with the same coach) can never overlap, whatever the isolation level.
    op.execute("CREATE EXTENSION IF NOT EXISTS btree_gist")
    op.execute(
        "ALTER TABLE bookings ADD CONSTRAINT ex_booking_court_overlap "
        "EXCLUDE USING gist (court_id WITH =, tstzrange(start_time, end_time, '[)') WITH &&) "
        "WHERE (status = 'confirmed')"
    )
    op.execute(
        "ALTER TABLE bookings ADD CONSTRAINT ex_booking_coach_overlap "
        "EXCLUDE USING gist (coach_id WITH =, tstzrange(start_time, end_time, '[)') WITH &&) "
        "WHERE (status = 'confirmed' AND coach_id IS NOT NULL)"
    )

    op.create_table(
        "booking_equipment",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("booking_id", sa.Integer(), sa.ForeignKey("bookings.id", ondelete="CASCADE")),
        sa.Column(
            "equipment_id",
            sa.Integer(),
            sa.ForeignKey("equipment.id", ondelete="RESTRICT"),
            index=True,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.UniqueConstraint("booking_id", "equipment_id", name="uq_booking_equipment_item"),
        sa.CheckConstraint("quantity > 0", name="ck_booking_equipment_quantity_positive"),
    )


def downgrade() -> None:
    op.drop_table("booking_equipment")
    op.drop_table("bookings")
    op.drop_table("pricing_rules")
    op.drop_table("equipment")
    op.drop_table("coaches")
    op.drop_table("courts")
    op.drop_table("users")
    for enum_name in ("bookingstatus", "rulekind", "userrole"):
        postgresql.ENUM(name=enum_name).drop(op.get_bind(), checkfirst=True)
