import logging
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from pydantic import BaseModel
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.core.errors import AuthenticationError, ValidationError
from app.core.security import create_user_token, get_current_user, get_password_hash, verify_password
from app.db import models
from app.db.session import get_db

logger = logging.getLogger("vistoria.auth")
router = APIRouter(tags=["Auth"])

MIN_PASSWORD_LENGTH = 6


class LoginRequest(BaseModel):
    email: str
    senha: str


class UsuarioInfo(BaseModel):
    id: int
    nome: str
    email: str
    role: str
    oficina_id: Optional[int] = None

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    token: str
    usuario: UsuarioInfo


class TokenResponse(BaseModel):
    access_token: str
    token_type: str
    role: str


class SenhaUpdate(BaseModel):
    senha_antiga: str
    nova_senha: str


def _authenticate(db: Session, email: str, password: str) -> models.Usuario:
    normalized = email.strip().lower()
    user = db.query(models.Usuario).filter(func.lower(models.Usuario.email) == normalized).first()
    if not user or not verify_password(password, user.senha_hash):
        logger.info("login rejected email=%s", normalized)
        raise AuthenticationError("Usuario ou senha incorretos.")
    return user


@router.post("/auth/login", response_model=LoginResponse, summary="Login JSON (frontend)")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """
    Uso tipico via frontend:
    - POST /api/auth/login
    - body: {"email": "...", "senha": "..."}
    """
    user = _authenticate(db, payload.email, payload.senha)
    return {"token": create_user_token(user), "usuario": user}


@router.post(
    "/auth/token",
    response_model=TokenResponse,
    summary="Login para Swagger (OAuth2PasswordBearer)",
)
def login_swagger(form_data: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    """
    Uso via Swagger UI (botao Authorize):
    - tokenUrl aponta para este endpoint.
    - Campos esperados: username (email) / password.
    """
    user = _authenticate(db, form_data.username, form_data.password)
    return {"access_token": create_user_token(user), "token_type": "bearer", "role": user.role}


@router.get("/auth/me", response_model=UsuarioInfo)
def me(current_user: models.Usuario = Depends(get_current_user)):
    return current_user


@router.put("/auth/senha")
def change_password(
    payload: SenhaUpdate,
    db: Session = Depends(get_db),
    current_user: models.Usuario = Depends(get_current_user),
):
    if len(payload.nova_senha) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"A nova senha deve ter pelo menos {MIN_PASSWORD_LENGTH} caracteres.")
    if not verify_password(payload.senha_antiga, current_user.senha_hash):
        raise AuthenticationError("Senha antiga incorreta.")
    try:
        current_user.senha_hash = get_password_hash(payload.nova_senha)
    except ValueError as exc:
        raise ValidationError(str(exc))
    db.commit()
    logger.info("password changed user_id=%s", current_user.id)
    return {"message": "Senha alterada com sucesso."}
