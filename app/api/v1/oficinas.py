import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.core.authorization import parse_id
from app.core.errors import NotFoundError, ValidationError
from app.core.security import require_superadmin
from app.db import models
from app.db.session import get_db

logger = logging.getLogger("vistoria.oficinas")
router = APIRouter(tags=["Oficinas"])


class OficinaPayload(BaseModel):
    nome_fantasia: str
    cnpj: Optional[str] = None
    email: Optional[str] = None
    telefone: Optional[str] = None


class OficinaResponse(OficinaPayload):
    id: int

    class Config:
        from_attributes = True


def _get_oficina_or_404(db: Session, oficina_id: str) -> models.Oficina:
    pk = parse_id(oficina_id, "Oficina nao encontrada.")
    oficina = db.get(models.Oficina, pk)
    if not oficina:
        raise NotFoundError("Oficina nao encontrada.")
    return oficina


def _apply(oficina: models.Oficina, payload: OficinaPayload) -> None:
    nome = payload.nome_fantasia.strip()
    if not nome:
        raise ValidationError("Nome fantasia e obrigatorio.")
    oficina.nome_fantasia = nome
    oficina.cnpj = (payload.cnpj or "").strip() or None
    oficina.email = (payload.email or "").strip() or None
    oficina.telefone = (payload.telefone or "").strip() or None


@router.get("/oficinas", response_model=list[OficinaResponse])
def list_oficinas(
    db: Session = Depends(get_db),
    _: models.Usuario = Depends(require_superadmin),
):
    return db.query(models.Oficina).order_by(models.Oficina.nome_fantasia).all()


@router.post("/oficinas", response_model=OficinaResponse, status_code=status.HTTP_201_CREATED)
def create_oficina(
    payload: OficinaPayload,
    db: Session = Depends(get_db),
    _: models.Usuario = Depends(require_superadmin),
):
    oficina = models.Oficina()
    _apply(oficina, payload)
    db.add(oficina)
    db.commit()
    db.refresh(oficina)
    logger.info("oficina created id=%s", oficina.id)
    return oficina


@router.put("/oficinas/{oficina_id}", response_model=OficinaResponse)
def update_oficina(
    oficina_id: str,
    payload: OficinaPayload,
    db: Session = Depends(get_db),
    _: models.Usuario = Depends(require_superadmin),
):
    oficina = _get_oficina_or_404(db, oficina_id)
    _apply(oficina, payload)
    db.commit()
    db.refresh(oficina)
    return oficina


@router.delete("/oficinas/{oficina_id}")
def delete_oficina(
    oficina_id: str,
    db: Session = Depends(get_db),
    _: models.Usuario = Depends(require_superadmin),
):
    oficina = _get_oficina_or_404(db, oficina_id)
    db.delete(oficina)
    db.commit()
    logger.info("oficina deleted id=%s", oficina_id)
    return {"message": "Oficina excluida com sucesso."}
