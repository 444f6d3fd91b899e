"""oficinas, usuarios and checklist tables

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "oficinas",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("nome_fantasia", sa.String(), nullable=False),
        sa.Column("cnpj", sa.String(), nullable=True),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("telefone", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
    )

    op.create_table(
        "usuarios",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("nome", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("senha_hash", sa.String(), nullable=False),
        sa.Column("role", sa.String(), nullable=False, server_default="membro"),
        sa.Column("oficina_id", sa.Integer(), sa.ForeignKey("oficinas.id", ondelete="CASCADE"), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
        sa.UniqueConstraint("email", name="uq_usuarios_email"),
    )
    op.create_index("ix_usuarios_oficina_id", "usuarios", ["oficina_id"])

    op.create_table(
        "ordem_servico",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("oficina_id", sa.Integer(), sa.ForeignKey("oficinas.id", ondelete="CASCADE"), nullable=False),
        sa.Column("cliente_nome", sa.String(), nullable=False),
        sa.Column("veiculo_placa", sa.String(), nullable=False),
        sa.Column("veiculo_modelo", sa.String(), nullable=False),
        sa.Column("seguradora_nome", sa.String(), nullable=True),
        sa.Column("assinatura_cliente", sa.Text(), nullable=True),
        sa.Column("data", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
    )
    op.create_index("ix_ordem_servico_oficina_id", "ordem_servico", ["oficina_id"])

    op.create_table(
        "checklist_item",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("ordem", sa.Integer(), nullable=False),
        sa.Column("nome", sa.String(), nullable=False),
        sa.Column("tipo", sa.String(), nullable=False, server_default="options"),
        sa.Column("opcoes", sa.JSON(), nullable=True),
    )

    op.create_table(
        "checklist_resposta",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("os_id", sa.Integer(), sa.ForeignKey("ordem_servico.id", ondelete="CASCADE"), nullable=False),
        sa.Column("item_id", sa.Integer(), sa.ForeignKey("checklist_item.id"), nullable=False),
        sa.Column("status", sa.String(), nullable=True),
        sa.Column("observacao", sa.Text(), nullable=True),
        sa.UniqueConstraint("os_id", "item_id", name="uq_resposta_os_item"),
    )

    op.create_table(
        "checklist_foto",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("os_id", sa.Integer(), sa.ForeignKey("ordem_servico.id", ondelete="CASCADE"), nullable=False),
        sa.Column("caminho_arquivo", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.text("(CURRENT_TIMESTAMP)")),
    )
    op.create_index("ix_checklist_foto_os_id", "checklist_foto", ["os_id"])


def downgrade() -> None:
    op.drop_index("ix_checklist_foto_os_id", table_name="checklist_foto")
    op.drop_table("checklist_foto")
    op.drop_table("checklist_resposta")
    op.drop_table("checklist_item")
    op.drop_index("ix_ordem_servico_oficina_id", table_name="ordem_servico")
    op.drop_table("ordem_servico")
    op.drop_index("ix_usuarios_oficina_id", table_name="usuarios")
    op.drop_table("usuarios")
    op.drop_table("oficinas")
