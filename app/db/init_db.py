import logging
import os

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import get_password_hash
from app.db import models
from app.db.session import SessionLocal

logger = logging.getLogger("vistoria.seed")

RESET_SUPERADMIN_PASSWORD = os.getenv("RESET_SUPERADMIN_PASSWORD", "").strip().lower() in {"1", "true", "yes"}

_CONDITION = ["OK", "Avariado", "Ausente"]
_WORKING = ["Funcionando", "Com defeito", "Ausente"]

DEFAULT_CHECKLIST_ITEMS = [
    ("Para-choque dianteiro", models.ITEM_KIND_OPTIONS, _CONDITION),
    ("Para-choque traseiro", models.ITEM_KIND_OPTIONS, _CONDITION),
    ("Capo", models.ITEM_KIND_OPTIONS, _CONDITION),
    ("Teto", models.ITEM_KIND_OPTIONS, _CONDITION),
    ("Porta dianteira esquerda", models.ITEM_KIND_OPTIONS, _CONDITION),
    ("Porta dianteira direita", models.ITEM_KIND_OPTIONS, _CONDITION),
    ("Porta traseira esquerda", models.ITEM_KIND_OPTIONS, _CONDITION),
    ("Porta traseira direita", models.ITEM_KIND_OPTIONS, _CONDITION),
    ("Para-brisa", models.ITEM_KIND_OPTIONS, _CONDITION),
    ("Retrovisores", models.ITEM_KIND_OPTIONS, _CONDITION),
    ("Farois", models.ITEM_KIND_OPTIONS, _WORKING),
    ("Lanternas", models.ITEM_KIND_OPTIONS, _WORKING),
    ("Pneus", models.ITEM_KIND_OPTIONS, ["Bom", "Regular", "Ruim"]),
    ("Estepe", models.ITEM_KIND_OPTIONS, ["Presente", "Ausente"]),
    ("Macaco e chave de roda", models.ITEM_KIND_OPTIONS, ["Presente", "Ausente"]),
    ("Triangulo", models.ITEM_KIND_OPTIONS, ["Presente", "Ausente"]),
    ("Radio / multimidia", models.ITEM_KIND_OPTIONS, _WORKING),
    ("Bancos", models.ITEM_KIND_OPTIONS, _CONDITION),
    ("Nivel de combustivel", models.ITEM_KIND_RANGE, None),
    ("Quilometragem", models.ITEM_KIND_NUMBER, None),
]


def seed_checklist_items(db: Session) -> int:
    """Inserts the fixed checklist definitions once; existing rows are left untouched."""
    if db.query(func.count(models.ChecklistItem.id)).scalar():
        return 0
    for ordem, (nome, tipo, opcoes) in enumerate(DEFAULT_CHECKLIST_ITEMS, start=1):
        db.add(models.ChecklistItem(ordem=ordem, nome=nome, tipo=tipo, opcoes=opcoes))
    db.commit()
    logger.info("checklist items seeded count=%s", len(DEFAULT_CHECKLIST_ITEMS))
    return len(DEFAULT_CHECKLIST_ITEMS)


def ensure_superadmin(db: Session, email: str | None = None, password: str | None = None, reset: bool = False) -> models.Usuario:
    email = (email or settings.SUPERADMIN_EMAIL).strip().lower()
    password = password or settings.SUPERADMIN_PASSWORD
    user = db.query(models.Usuario).filter(func.lower(models.Usuario.email) == email).first()
    if not user:
        user = models.Usuario(
            nome="Superadmin",
            email=email,
            senha_hash=get_password_hash(password),
            role=models.ROLE_SUPERADMIN,
            oficina_id=None,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("superadmin created email=%s", email)
        return user
    changed = False
    if user.role != models.ROLE_SUPERADMIN or user.oficina_id is not None:
        user.role = models.ROLE_SUPERADMIN
        user.oficina_id = None
        changed = True
    if reset:
        user.senha_hash = get_password_hash(password)
        changed = True
    if changed:
        db.commit()
        db.refresh(user)
    return user


def seed_initial_data() -> None:
    with SessionLocal() as db:
        seed_checklist_items(db)
        ensure_superadmin(db, reset=RESET_SUPERADMIN_PASSWORD)
