from fastapi import Depends
from sqlalchemy.orm import Query, Session

from app.core.errors import ForbiddenError, NotFoundError
from app.core.security import get_current_user
from app.db import models
from app.db.session import get_db


def parse_id(raw: object, message: str) -> int:
    """Identifiers that are not integers can never exist, so they are reported as missing."""
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        raise NotFoundError(message)
    if value <= 0:
        raise NotFoundError(message)
    return value


def can_access_tenant(user: models.Usuario, oficina_id: int | None) -> bool:
    if user.is_superadmin:
        return True
    return user.oficina_id is not None and user.oficina_id == oficina_id


def enforce_tenant_access(user: models.Usuario, oficina_id: int | None) -> None:
    if not can_access_tenant(user, oficina_id):
        raise ForbiddenError("Acesso proibido.")


def apply_tenant_scope(query: Query, user: models.Usuario, tenant_field) -> Query:
    if user.is_superadmin:
        return query
    return query.filter(tenant_field == user.oficina_id)


def load_order_for_user(db: Session, user: models.Usuario, order_id: object) -> models.OrdemServico:
    pk = parse_id(order_id, "Ordem de servico nao encontrada.")
    order = db.query(models.OrdemServico).filter(models.OrdemServico.id == pk).first()
    if not order:
        raise NotFoundError("Ordem de servico nao encontrada.")
    enforce_tenant_access(user, order.oficina_id)
    return order


def get_authorized_order(
    id: str,
    current_user: models.Usuario = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> models.OrdemServico:
    return load_order_for_user(db, current_user, id)
