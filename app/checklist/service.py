import logging
import math
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.checklist.answers import Answer, answer_columns, answer_from_row, answer_from_submission
from app.checklist.uploads import check_image_upload, check_upload_batch
from app.core.authorization import apply_tenant_scope, enforce_tenant_access, load_order_for_user, parse_id
from app.core.errors import NotFoundError, ValidationError
from app.db import models
from app.services.image_fetch import UpstreamFetchError, decode_data_url, load_image
from app.services.storage import StorageClient, StorageError

logger = logging.getLogger("vistoria.checklist")


@dataclass
class OrderView:
    order: models.OrdemServico
    items: list[models.ChecklistItem]
    answers: dict[int, models.ChecklistResposta] = field(default_factory=dict)
    photos: list[models.ChecklistFoto] = field(default_factory=list)

    def answer_for(self, item: models.ChecklistItem) -> Optional[Answer]:
        return answer_from_row(item, self.answers.get(item.id))


@dataclass
class UploadedFile:
    filename: Optional[str]
    content_type: Optional[str]
    data: bytes


def list_items(db: Session) -> list[models.ChecklistItem]:
    return db.query(models.ChecklistItem).order_by(models.ChecklistItem.ordem, models.ChecklistItem.id).all()


def aggregate_order(db: Session, user: models.Usuario, order_id: object) -> OrderView:
    order = load_order_for_user(db, user, order_id)
    items = list_items(db)
    answers = (
        db.query(models.ChecklistResposta)
        .filter(models.ChecklistResposta.os_id == order.id)
        .all()
    )
    photos = (
        db.query(models.ChecklistFoto)
        .filter(models.ChecklistFoto.os_id == order.id)
        .order_by(models.ChecklistFoto.id)
        .all()
    )
    return OrderView(
        order=order,
        items=items,
        answers={answer.item_id: answer for answer in answers},
        photos=photos,
    )


def _required_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    text = value.strip()
    return text or None


def _order_fields(cliente_nome, veiculo_placa, veiculo_modelo, seguradora_nome) -> dict:
    cliente_nome = _required_text(cliente_nome)
    veiculo_placa = _required_text(veiculo_placa)
    veiculo_modelo = _required_text(veiculo_modelo)
    if not cliente_nome or not veiculo_placa or not veiculo_modelo:
        raise ValidationError("Nome do cliente, modelo e placa do veiculo sao obrigatorios.")
    return {
        "cliente_nome": cliente_nome,
        "veiculo_placa": veiculo_placa.upper(),
        "veiculo_modelo": veiculo_modelo,
        "seguradora_nome": _required_text(seguradora_nome),
    }


def create_order(
    db: Session,
    user: models.Usuario,
    cliente_nome: Optional[str],
    veiculo_placa: Optional[str],
    veiculo_modelo: Optional[str],
    seguradora_nome: Optional[str] = None,
    oficina_id: Optional[int] = None,
) -> models.OrdemServico:
    fields = _order_fields(cliente_nome, veiculo_placa, veiculo_modelo, seguradora_nome)
    if user.is_superadmin:
        if oficina_id is None:
            raise ValidationError("Informe a oficina da ordem de servico.")
        if not db.get(models.Oficina, oficina_id):
            raise ValidationError("Oficina informada nao existe.")
        tenant_id = oficina_id
    else:
        tenant_id = user.oficina_id
    order = models.OrdemServico(oficina_id=tenant_id, **fields)
    db.add(order)
    db.commit()
    db.refresh(order)
    logger.info("order created id=%s oficina_id=%s", order.id, tenant_id)
    return order


def update_order(
    db: Session,
    order: models.OrdemServico,
    cliente_nome: Optional[str],
    veiculo_placa: Optional[str],
    veiculo_modelo: Optional[str],
    seguradora_nome: Optional[str] = None,
) -> models.OrdemServico:
    fields = _order_fields(cliente_nome, veiculo_placa, veiculo_modelo, seguradora_nome)
    for key, value in fields.items():
        setattr(order, key, value)
    db.commit()
    db.refresh(order)
    return order


def delete_order(db: Session, order: models.OrdemServico) -> None:
    db.delete(order)
    db.commit()
    logger.info("order deleted id=%s", order.id)


def list_orders(
    db: Session,
    user: models.Usuario,
    page: int = 1,
    limit: int = 20,
    search: str = "",
) -> dict:
    page = max(page, 1)
    limit = min(max(limit, 1), 100)
    query = apply_tenant_scope(db.query(models.OrdemServico), user, models.OrdemServico.oficina_id)
    term = (search or "").strip()
    if term:
        like = f"%{term}%"
        query = query.filter(
            or_(
                models.OrdemServico.cliente_nome.ilike(like),
                models.OrdemServico.veiculo_placa.ilike(like),
                models.OrdemServico.veiculo_modelo.ilike(like),
            )
        )
    total = query.count()
    rows = (
        query.order_by(models.OrdemServico.data.desc(), models.OrdemServico.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "data": rows,
        "totalItems": total,
        "totalPages": math.ceil(total / limit),
        "currentPage": page,
    }


def _parse_item_id(raw: object) -> int:
    # bool is an int subclass; floats such as 1.9 must not truncate to 1
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.strip().isdigit():
        return int(raw.strip())
    raise ValidationError("Cada resposta precisa de um item_id valido.")


def save_answers(db: Session, user: models.Usuario, os_id: object, respostas: list[dict]) -> int:
    """Replaces every answer of the order with the submitted set in one transaction."""
    order_pk = parse_id(os_id, "Ordem de servico nao encontrada.")
    order = (
        db.query(models.OrdemServico)
        .filter(models.OrdemServico.id == order_pk)
        .with_for_update()
        .first()
    )
    if not order:
        raise NotFoundError("Ordem de servico nao encontrada.")
    enforce_tenant_access(user, order.oficina_id)

    items = {item.id: item for item in list_items(db)}
    rows = []
    seen: set[int] = set()
    for entry in respostas:
        item_id = _parse_item_id(entry.get("item_id"))
        item = items.get(item_id)
        if item is None:
            raise ValidationError(f"Item de checklist {item_id} nao existe.")
        if item_id in seen:
            raise ValidationError(f"Item de checklist {item_id} enviado mais de uma vez.")
        seen.add(item_id)
        answer = answer_from_submission(item, entry.get("status"), entry.get("observacao"))
        status_value, observacao = answer_columns(answer)
        rows.append(
            models.ChecklistResposta(
                os_id=order.id, item_id=item_id, status=status_value, observacao=observacao
            )
        )

    try:
        db.query(models.ChecklistResposta).filter(
            models.ChecklistResposta.os_id == order.id
        ).delete(synchronize_session=False)
        db.add_all(rows)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("answers replaced os_id=%s count=%s", order.id, len(rows))
    return len(rows)


def save_photos(
    db: Session,
    user: models.Usuario,
    storage: StorageClient,
    os_id: object,
    files: list[UploadedFile],
    max_bytes: int,
    max_files: int,
) -> list[models.ChecklistFoto]:
    order = load_order_for_user(db, user, os_id)
    batch = check_upload_batch(len(files), max_files)
    if not batch.ok:
        raise ValidationError(batch.error)
    for upload in files:
        check = check_image_upload(upload.filename, upload.content_type, len(upload.data), max_bytes)
        if not check.ok:
            raise ValidationError(check.error)

    stored: list[str] = []
    try:
        for upload in files:
            object_name = storage.build_object_name(order.id, upload.filename or "foto")
            storage.upload_bytes(upload.data, object_name, content_type=upload.content_type)
            stored.append(object_name)
        photos = [
            models.ChecklistFoto(os_id=order.id, caminho_arquivo=storage.public_url(name))
            for name in stored
        ]
        db.add_all(photos)
        db.commit()
    except Exception:
        db.rollback()
        for object_name in stored:
            try:
                storage.delete_object(object_name)
            except StorageError as exc:
                logger.warning("cleanup failed object=%s error=%s", object_name, exc)
        raise
    for photo in photos:
        db.refresh(photo)
    return photos


def delete_photo(db: Session, user: models.Usuario, storage: StorageClient, foto_id: object) -> None:
    pk = parse_id(foto_id, "Foto nao encontrada.")
    photo = db.query(models.ChecklistFoto).filter(models.ChecklistFoto.id == pk).first()
    if not photo:
        raise NotFoundError("Foto nao encontrada.")
    enforce_tenant_access(user, photo.ordem.oficina_id)
    storage.delete_object(storage.object_name_from_url(photo.caminho_arquivo))
    db.delete(photo)
    db.commit()
    logger.info("photo deleted id=%s os_id=%s", pk, photo.os_id)


def save_signature(db: Session, order: models.OrdemServico, assinatura: Optional[str]) -> None:
    if not assinatura or not assinatura.strip():
        raise ValidationError("Nenhuma assinatura fornecida.")
    try:
        load_image(decode_data_url(assinatura))
    except (ValueError, UpstreamFetchError):
        raise ValidationError("Assinatura deve ser uma imagem valida em base64.")
    order.assinatura_cliente = assinatura.strip()
    db.commit()
