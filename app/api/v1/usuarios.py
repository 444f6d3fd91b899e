import logging
from typing import Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.authorization import parse_id
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.core.security import get_password_hash, require_superadmin
from app.db import models
from app.db.session import get_db

logger = logging.getLogger("vistoria.usuarios")
router = APIRouter(tags=["Usuarios"])


class UsuarioCreate(BaseModel):
    nome: str = Field(..., min_length=2)
    email: str
    senha: str = Field(..., min_length=6)
    role: str = models.ROLE_MEMBER
    oficina_id: Optional[int] = None


class UsuarioUpdate(BaseModel):
    nome: str = Field(..., min_length=2)
    email: str
    senha: Optional[str] = None
    role: str = models.ROLE_MEMBER
    oficina_id: Optional[int] = None


def _serialize_user(user: models.Usuario) -> dict:
    return {
        "id": user.id,
        "nome": user.nome,
        "email": user.email,
        "role": user.role,
        "oficina_id": user.oficina_id,
        "nome_oficina": user.oficina.nome_fantasia if user.oficina else None,
        "created_at": user.created_at,
    }


def _get_user_or_404(db: Session, user_id: str) -> models.Usuario:
    pk = parse_id(user_id, "Usuario nao encontrado.")
    user = db.get(models.Usuario, pk)
    if not user:
        raise NotFoundError("Usuario nao encontrado.")
    return user


def _resolve_tenant(db: Session, role: str, oficina_id: Optional[int]) -> Optional[int]:
    if role not in models.ROLES:
        raise ValidationError(f"Perfil invalido: {role}.")
    if role == models.ROLE_SUPERADMIN:
        return None
    if oficina_id is None:
        raise ValidationError("Oficina e obrigatoria para este perfil.")
    if not db.get(models.Oficina, oficina_id):
        raise ValidationError("Oficina informada nao existe.")
    return oficina_id


def _ensure_unique_email(db: Session, email: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(models.Usuario).filter(func.lower(models.Usuario.email) == email)
    if exclude_id is not None:
        query = query.filter(models.Usuario.id != exclude_id)
    if query.first():
        raise ConflictError("Email ja cadastrado.")


def _hash(password: str) -> str:
    try:
        return get_password_hash(password)
    except ValueError as exc:
        raise ValidationError(str(exc))


def _commit(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email ja cadastrado.")


@router.get("/usuarios")
def list_usuarios(
    db: Session = Depends(get_db),
    _: models.Usuario = Depends(require_superadmin),
):
    users = db.query(models.Usuario).order_by(models.Usuario.nome).all()
    return [_serialize_user(user) for user in users]


@router.post("/usuarios", status_code=status.HTTP_201_CREATED)
def create_usuario(
    payload: UsuarioCreate,
    db: Session = Depends(get_db),
    _: models.Usuario = Depends(require_superadmin),
):
    email = payload.email.strip().lower()
    oficina_id = _resolve_tenant(db, payload.role, payload.oficina_id)
    _ensure_unique_email(db, email)
    user = models.Usuario(
        nome=payload.nome.strip(),
        email=email,
        senha_hash=_hash(payload.senha),
        role=payload.role,
        oficina_id=oficina_id,
    )
    db.add(user)
    _commit(db)
    db.refresh(user)
    logger.info("user created id=%s role=%s oficina_id=%s", user.id, user.role, user.oficina_id)
    return _serialize_user(user)


@router.put("/usuarios/{user_id}")
def update_usuario(
    user_id: str,
    payload: UsuarioUpdate,
    db: Session = Depends(get_db),
    _: models.Usuario = Depends(require_superadmin),
):
    user = _get_user_or_404(db, user_id)
    email = payload.email.strip().lower()
    oficina_id = _resolve_tenant(db, payload.role, payload.oficina_id)
    _ensure_unique_email(db, email, exclude_id=user.id)
    if payload.senha and len(payload.senha) < 6:
        raise ValidationError("A senha deve ter pelo menos 6 caracteres.")
    user.nome = payload.nome.strip()
    user.email = email
    user.role = payload.role
    user.oficina_id = oficina_id
    if payload.senha:
        user.senha_hash = _hash(payload.senha)
    _commit(db)
    db.refresh(user)
    return _serialize_user(user)


@router.delete("/usuarios/{user_id}")
def delete_usuario(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: models.Usuario = Depends(require_superadmin),
):
    user = _get_user_or_404(db, user_id)
    if user.id == current_user.id:
        raise ValidationError("Nao e possivel excluir o proprio usuario.")
    db.delete(user)
    db.commit()
    logger.info("user deleted id=%s", user_id)
    return {"message": "Usuario excluido com sucesso."}
