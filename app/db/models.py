from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

ROLE_SUPERADMIN = "superadmin"
ROLE_TENANT_ADMIN = "admin"
ROLE_MEMBER = "membro"
ROLES = {ROLE_SUPERADMIN, ROLE_TENANT_ADMIN, ROLE_MEMBER}

ITEM_KIND_OPTIONS = "options"
ITEM_KIND_RANGE = "range"
ITEM_KIND_NUMBER = "number"


class Oficina(Base):
    __tablename__ = "oficinas"

    id = Column(Integer, primary_key=True, autoincrement=True)
    nome_fantasia = Column(String, nullable=False)
    cnpj = Column(String, nullable=True)
    email = Column(String, nullable=True)
    telefone = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    usuarios = relationship("Usuario", back_populates="oficina", cascade="all, delete-orphan")
    ordens = relationship("OrdemServico", back_populates="oficina", cascade="all, delete-orphan")


class Usuario(Base):
    __tablename__ = "usuarios"
    __table_args__ = (UniqueConstraint("email", name="uq_usuarios_email"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    nome = Column(String, nullable=False)
    email = Column(String, nullable=False)
    senha_hash = Column(String, nullable=False)
    role = Column(String, nullable=False, default=ROLE_MEMBER)
    oficina_id = Column(Integer, ForeignKey("oficinas.id", ondelete="CASCADE"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    oficina = relationship("Oficina", back_populates="usuarios")

    @property
    def is_superadmin(self) -> bool:
        return self.role == ROLE_SUPERADMIN


class OrdemServico(Base):
    __tablename__ = "ordem_servico"

    id = Column(Integer, primary_key=True, autoincrement=True)
    oficina_id = Column(Integer, ForeignKey("oficinas.id", ondelete="CASCADE"), nullable=False)
    cliente_nome = Column(String, nullable=False)
    veiculo_placa = Column(String, nullable=False)
    veiculo_modelo = Column(String, nullable=False)
    seguradora_nome = Column(String, nullable=True)
    assinatura_cliente = Column(Text, nullable=True)
    data = Column(DateTime, default=datetime.utcnow, nullable=False)

    oficina = relationship("Oficina", back_populates="ordens")
    respostas = relationship(
        "ChecklistResposta",
        back_populates="ordem",
        cascade="all, delete-orphan",
    )
    fotos = relationship(
        "ChecklistFoto",
        back_populates="ordem",
        cascade="all, delete-orphan",
    )


class ChecklistItem(Base):
    __tablename__ = "checklist_item"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ordem = Column(Integer, nullable=False)
    nome = Column(String, nullable=False)
    tipo = Column(String, nullable=False, default=ITEM_KIND_OPTIONS)
    opcoes = Column(JSON, nullable=True)


class ChecklistResposta(Base):
    __tablename__ = "checklist_resposta"
    __table_args__ = (UniqueConstraint("os_id", "item_id", name="uq_resposta_os_item"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    os_id = Column(Integer, ForeignKey("ordem_servico.id", ondelete="CASCADE"), nullable=False)
    item_id = Column(Integer, ForeignKey("checklist_item.id"), nullable=False)
    status = Column(String, nullable=True)
    observacao = Column(Text, nullable=True)

    ordem = relationship("OrdemServico", back_populates="respostas")


class ChecklistFoto(Base):
    __tablename__ = "checklist_foto"

    id = Column(Integer, primary_key=True, autoincrement=True)
    os_id = Column(Integer, ForeignKey("ordem_servico.id", ondelete="CASCADE"), nullable=False)
    caminho_arquivo = Column(String, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    ordem = relationship("OrdemServico", back_populates="fotos")
