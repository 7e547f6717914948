"""Initial schema for centres, candidats, places and archived places

Revision ID: 202406010001
Revises:
Create Date: 2024-06-01 00:01:00
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "202406010001"
down_revision = None
branch_labels = None
depends_on = None

archive_reason_enum = sa.Enum(
    "cancelled",
    "modified",
    name="archive_reason",
)


def upgrade() -> None:
    op.create_table(
        "centres",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("nom", sa.String(length=128), nullable=False, unique=True),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("adresse", sa.String(length=255), nullable=False),
        sa.Column("departement", sa.String(length=8), nullable=False),
    )
    op.create_index("ix_centres_nom", "centres", ["nom"])
    op.create_index("ix_centres_departement", "centres", ["departement"])

    op.create_table(
        "candidats",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("code_neph", sa.String(length=32), nullable=False),
        sa.Column("nom_naissance", sa.String(length=128), nullable=False),
        sa.Column("prenom", sa.String(length=128), nullable=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("portable", sa.String(length=32), nullable=True),
        sa.Column("departement", sa.String(length=8), nullable=True),
        sa.Column("home_departement", sa.String(length=8), nullable=True),
        sa.Column("date_reussite_etg", sa.DateTime(timezone=True), nullable=True),
        sa.Column("date_dernier_echec_pratique", sa.DateTime(timezone=True), nullable=True),
        sa.Column("nb_echecs_pratiques", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("can_book_from", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    )
    op.create_index("ix_candidats_code_neph", "candidats", ["code_neph"])
    op.create_index("ix_candidats_email", "candidats", ["email"])

    op.create_table(
        "places",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "centre_id",
            sa.String(length=36),
            sa.ForeignKey("centres.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("inspecteur", sa.String(length=64), nullable=True),
        sa.Column(
            "booked_by",
            sa.String(length=36),
            sa.ForeignKey("candidats.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("booked_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_places_centre_date", "places", ["centre_id", "date"])
    op.create_index("ix_places_booked_by", "places", ["booked_by"])

    op.create_table(
        "archived_places",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column(
            "candidat_id",
            sa.String(length=36),
            sa.ForeignKey("candidats.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("place_id", sa.String(length=36), nullable=False),
        sa.Column("centre_id", sa.String(length=36), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("inspecteur", sa.String(length=64), nullable=True),
        sa.Column("booked_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("archive_reason", archive_reason_enum, nullable=False),
    )
    op.create_index("ix_archived_places_candidat_id", "archived_places", ["candidat_id"])


def downgrade() -> None:
    op.drop_index("ix_archived_places_candidat_id", table_name="archived_places")
    op.drop_table("archived_places")
    op.drop_index("ix_places_booked_by", table_name="places")
    op.drop_index("ix_places_centre_date", table_name="places")
    op.drop_table("places")
    op.drop_index("ix_candidats_email", table_name="candidats")
    op.drop_index("ix_candidats_code_neph", table_name="candidats")
    op.drop_table("candidats")
    op.drop_index("ix_centres_departement", table_name="centres")
    op.drop_index("ix_centres_nom", table_name="centres")
    op.drop_table("centres")
    archive_reason_enum.drop(op.get_bind(), checkfirst=True)
