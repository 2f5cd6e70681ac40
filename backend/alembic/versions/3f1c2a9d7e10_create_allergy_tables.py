"""create_allergy_tables

Revision ID: 3f1c2a9d7e10
Revises:
Create Date: 2026-10-19 10:12:44.118203

"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "3f1c2a9d7e10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "concepts",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("uuid", sa.String(length=38), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_concepts")),
    )
    op.create_index(op.f("ix_concepts_uuid"), "concepts", ["uuid"], unique=True)
    op.create_table(
        "patients",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("uuid", sa.String(length=38), nullable=False),
        sa.Column("first_name", sa.String(length=50), nullable=False),
        sa.Column("last_name", sa.String(length=50), nullable=False),
        sa.Column("dob", sa.Date(), nullable=True),
        sa.Column("sex", sa.String(length=1), nullable=True),
        sa.Column("allergy_status", sa.String(length=50), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_patients")),
        sa.UniqueConstraint("uuid", name=op.f("uq_patients_uuid")),
    )
    op.create_table(
        "allergies",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("uuid", sa.String(length=38), nullable=False),
        sa.Column("patient_id", sa.Integer(), nullable=False),
        sa.Column("allergen_type", sa.String(length=50), nullable=False),
        sa.Column("coded_allergen_id", sa.Integer(), nullable=True),
        sa.Column("non_coded_allergen", sa.String(length=255), nullable=True),
        sa.Column("severity_id", sa.Integer(), nullable=True),
        sa.Column("comment", sa.Text(), nullable=True),
        sa.Column("voided", sa.Boolean(), nullable=False),
        sa.Column("date_voided", sa.DateTime(timezone=True), nullable=True),
        sa.Column("void_reason", sa.String(length=255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(
            ["patient_id"], ["patients.id"], name=op.f("fk_allergies_patient_id_patients")
        ),
        sa.ForeignKeyConstraint(
            ["coded_allergen_id"],
            ["concepts.id"],
            name=op.f("fk_allergies_coded_allergen_id_concepts"),
        ),
        sa.ForeignKeyConstraint(
            ["severity_id"], ["concepts.id"], name=op.f("fk_allergies_severity_id_concepts")
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_allergies")),
    )
    op.create_index(op.f("ix_allergies_id"), "allergies", ["id"])
    op.create_index(op.f("ix_allergies_uuid"), "allergies", ["uuid"], unique=True)
    op.create_index(op.f("ix_allergies_patient_id"), "allergies", ["patient_id"])
    op.create_table(
        "allergy_reactions",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("uuid", sa.String(length=38), nullable=False),
        sa.Column("allergy_id", sa.Integer(), nullable=False),
        sa.Column("reaction_id", sa.Integer(), nullable=True),
        sa.Column("reaction_non_coded", sa.String(length=255), nullable=True),
        sa.ForeignKeyConstraint(
            ["allergy_id"],
            ["allergies.id"],
            name=op.f("fk_allergy_reactions_allergy_id_allergies"),
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["reaction_id"],
            ["concepts.id"],
            name=op.f("fk_allergy_reactions_reaction_id_concepts"),
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_allergy_reactions")),
        sa.UniqueConstraint("uuid", name=op.f("uq_allergy_reactions_uuid")),
    )


def downgrade():
    op.drop_table("allergy_reactions")
    op.drop_index(op.f("ix_allergies_patient_id"), table_name="allergies")
    op.drop_index(op.f("ix_allergies_uuid"), table_name="allergies")
    op.drop_index(op.f("ix_allergies_id"), table_name="allergies")
    op.drop_table("allergies")
    op.drop_table("patients")
    op.drop_index(op.f("ix_concepts_uuid"), table_name="concepts")
    op.drop_table("concepts")
