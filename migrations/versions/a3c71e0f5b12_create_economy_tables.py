"""create economy tables"""
from alembic import op
import sqlalchemy as sa

revision = "a3c71e0f5b12"
down_revision = None
branch_labels = None
depends_on = None


def _json_type():
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        from sqlalchemy.dialects.postgresql import JSONB
        return JSONB
    return sa.JSON


def _catalog_columns():
    return [
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=128), nullable=False),
        sa.Column("price", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=16), nullable=False, server_default=sa.text("'money'")),
        sa.Column("rarity", sa.String(length=16), nullable=False, server_default=sa.text("'common'")),
    ]


def upgrade() -> None:
    json_type = _json_type()

    op.create_table(
        "users",
        sa.Column("user_id", sa.String(length=64), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("handle", sa.String(length=32), nullable=True),
        sa.Column("display_name", sa.String(length=64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("last_login_at", sa.DateTime(), nullable=True),
    )
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_handle"), "users", ["handle"], unique=True)

    op.create_table(
        "character",
        sa.Column("character_id", sa.String(length=64), primary_key=True),
        sa.Column("user_id", sa.String(length=64), sa.ForeignKey("users.user_id"), nullable=False, unique=True),
        sa.Column("name", sa.String(length=40), nullable=False),
        sa.Column("level", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("exp", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("progress_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("fame", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("money", sa.BigInteger(), nullable=False, server_default=sa.text("1500")),
        sa.Column("blackcoins", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("max_hp", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("hp", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("max_energy", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("energy", sa.Integer(), nullable=False, server_default=sa.text("100")),
        sa.Column("equipped_weapon1_id", sa.Integer(), nullable=True),
        sa.Column("equipped_weapon2_id", sa.Integer(), nullable=True),
        sa.Column("equipped_armor_id", sa.Integer(), nullable=True),
        sa.Column("equipped_house_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint("money >= 0", name="ck_character_money_nonneg"),
        sa.CheckConstraint("blackcoins >= 0", name="ck_character_blackcoins_nonneg"),
        sa.CheckConstraint("exp >= 0", name="ck_character_exp_nonneg"),
        sa.CheckConstraint("level >= 1", name="ck_character_level_pos"),
    )
    op.create_index(op.f("ix_character_name"), "character", ["name"])

    op.create_table(
        "inventory_entries",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "character_id", sa.String(length=64),
            sa.ForeignKey("character.character_id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("item_type", sa.String(length=16), nullable=False),
        sa.Column("item_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("equipped", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("slot", sa.String(length=16), nullable=True),
        sa.Column("acquired_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("character_id", "slot", name="uq_inventory_character_slot"),
        sa.CheckConstraint("quantity >= 1", name="ck_inventory_qty_pos"),
        sa.CheckConstraint(
            "(NOT equipped AND slot IS NULL) OR (equipped AND slot IS NOT NULL AND quantity = 1)",
            name="ck_inventory_equipped_slot",
        ),
    )
    op.create_index(op.f("ix_inventory_entries_character_id"), "inventory_entries", ["character_id"])
    op.create_index("ix_inventory_character_item", "inventory_entries", ["character_id", "item_type", "item_id"])

    op.create_table(
        "weapons",
        *_catalog_columns(),
        sa.Column("type", sa.String(length=16), nullable=False, server_default=sa.text("'melee'")),
        sa.Column("damage", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("energy_bonus", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.create_table(
        "armors",
        *_catalog_columns(),
        sa.Column("defense", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("hp_bonus", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.create_table(
        "houses",
        *_catalog_columns(),
        sa.Column("energy_regen", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("defense_bonus", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("hp_bonus", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.create_table(
        "special_items",
        *_catalog_columns(),
        sa.Column("effects", json_type, nullable=False),
    )
    op.create_table(
        "cars",
        *_catalog_columns(),
        sa.Column("speed", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )
    op.create_table(
        "dogs",
        *_catalog_columns(),
        sa.Column("power", sa.Integer(), nullable=False, server_default=sa.text("0")),
    )

    op.create_table(
        "tasks",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("metric", sa.String(length=64), nullable=False),
        sa.Column("goal", sa.Integer(), nullable=False),
        sa.Column("reward_money", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("reward_exp", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("reward_blackcoins", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("progress_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.CheckConstraint("goal > 0", name="ck_tasks_goal_pos"),
    )
    op.create_index(op.f("ix_tasks_metric"), "tasks", ["metric"])

    op.create_table(
        "user_task_progress",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("character_id", sa.String(length=64), sa.ForeignKey("character.character_id"), nullable=False),
        sa.Column("task_id", sa.Integer(), sa.ForeignKey("tasks.id"), nullable=False),
        sa.Column("progress", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reward_collected", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.UniqueConstraint("character_id", "task_id", name="uq_task_progress_character_task"),
    )
    op.create_index(op.f("ix_user_task_progress_character_id"), "user_task_progress", ["character_id"])

    op.create_table(
        "bank_accounts",
        sa.Column("character_id", sa.String(length=64), sa.ForeignKey("character.character_id"), primary_key=True),
        sa.Column("balance", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_interest_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint("balance >= 0", name="ck_bank_balance_nonneg"),
    )
    op.create_table(
        "bank_txns",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("character_id", sa.String(length=64), sa.ForeignKey("character.character_id"), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
    )
    op.create_index(op.f("ix_bank_txns_character_id"), "bank_txns", ["character_id"])

    op.create_table(
        "gangs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=64), nullable=False, unique=True),
        sa.Column("money", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint("money >= 0", name="ck_gang_money_nonneg"),
    )
    op.create_table(
        "gang_members",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("gang_id", sa.Integer(), sa.ForeignKey("gangs.id"), nullable=False),
        sa.Column(
            "character_id", sa.String(length=64), sa.ForeignKey("character.character_id"),
            nullable=False, unique=True,
        ),
        sa.Column("role", sa.String(length=16), nullable=False, server_default=sa.text("'MEMBER'")),
        sa.Column("contributed", sa.BigInteger(), nullable=False, server_default=sa.text("0")),
    )
    op.create_index(op.f("ix_gang_members_gang_id"), "gang_members", ["gang_id"])

    op.create_table(
        "blood_contracts",
        sa.Column("id", sa.String(length=64), primary_key=True),
        sa.Column("poster_id", sa.String(length=64), sa.ForeignKey("character.character_id"), nullable=False),
        sa.Column("target_id", sa.String(length=64), sa.ForeignKey("character.character_id"), nullable=False),
        sa.Column("price", sa.BigInteger(), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False, server_default=sa.text("'open'")),
        sa.Column("expires_at", sa.DateTime(), nullable=False),
        sa.Column("assassin_id", sa.String(length=64), sa.ForeignKey("character.character_id"), nullable=True),
        sa.Column("fulfilled_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.CheckConstraint("price > 0", name="ck_contract_price_pos"),
        sa.CheckConstraint("status IN ('open', 'fulfilled', 'expired')", name="ck_contract_status"),
    )
    op.create_index(op.f("ix_blood_contracts_poster_id"), "blood_contracts", ["poster_id"])
    op.create_index(op.f("ix_blood_contracts_target_id"), "blood_contracts", ["target_id"])
    op.create_index(op.f("ix_blood_contracts_status"), "blood_contracts", ["status"])
    op.create_index(op.f("ix_blood_contracts_expires_at"), "blood_contracts", ["expires_at"])


def downgrade() -> None:
    op.drop_table("blood_contracts")
    op.drop_table("gang_members")
    op.drop_table("gangs")
    op.drop_table("bank_txns")
    op.drop_table("bank_accounts")
    op.drop_table("user_task_progress")
    op.drop_table("tasks")
    for table in ("dogs", "cars", "special_items", "houses", "armors", "weapons"):
        op.drop_table(table)
    op.drop_table("inventory_entries")
    op.drop_table("character")
    op.drop_table("users")
