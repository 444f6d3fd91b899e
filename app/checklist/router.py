import logging

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.orm import Session

from app.checklist import service
from app.checklist.report import build_report
from app.checklist.schemas import (
    AssinaturaPayload,
    ChecklistItemResponse,
    FotoResponse,
    OrdemServicoCreate,
    OrdemServicoDetail,
    OrdemServicoPage,
    OrdemServicoResponse,
    OrdemServicoUpdate,
    RespostaResponse,
    RespostasPayload,
)
from app.checklist.uploads import read_upload
from app.core.authorization import get_authorized_order
from app.core.config import settings
from app.core.security import get_current_user
from app.db import models
from app.db.session import get_db
from app.services.storage import StorageClient, StorageError, get_storage

logger = logging.getLogger("vistoria.checklist")
router = APIRouter(prefix="/checklist", tags=["Checklist"])


@router.get("/itens", response_model=list[ChecklistItemResponse])
def list_checklist_items(
    db: Session = Depends(get_db),
    current_user: models.Usuario = Depends(get_current_user),
):
    return service.list_items(db)


@router.post("/ordem-servico", response_model=OrdemServicoResponse, status_code=status.HTTP_201_CREATED)
def create_ordem_servico(
    payload: OrdemServicoCreate,
    db: Session = Depends(get_db),
    current_user: models.Usuario = Depends(get_current_user),
):
    return service.create_order(
        db,
        current_user,
        cliente_nome=payload.cliente_nome,
        veiculo_placa=payload.veiculo_placa,
        veiculo_modelo=payload.veiculo_modelo,
        seguradora_nome=payload.seguradora_nome,
        oficina_id=payload.oficina_id,
    )


@router.get("/ordens-servico", response_model=OrdemServicoPage)
def list_ordens_servico(
    page: int = 1,
    limit: int = 20,
    search: str = "",
    db: Session = Depends(get_db),
    current_user: models.Usuario = Depends(get_current_user),
):
    return service.list_orders(db, current_user, page=page, limit=limit, search=search)


@router.get("/ordem-servico/{id}", response_model=OrdemServicoDetail)
def get_ordem_servico(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.Usuario = Depends(get_current_user),
):
    view = service.aggregate_order(db, current_user, id)
    detail = OrdemServicoDetail.model_validate(view.order)
    detail.itens = [ChecklistItemResponse.model_validate(item) for item in view.items]
    detail.respostas = [RespostaResponse.model_validate(row) for row in view.answers.values()]
    detail.fotos = [FotoResponse.model_validate(photo) for photo in view.photos]
    return detail


@router.put("/ordem-servico/{id}", response_model=OrdemServicoResponse)
def update_ordem_servico(
    payload: OrdemServicoUpdate,
    order: models.OrdemServico = Depends(get_authorized_order),
    db: Session = Depends(get_db),
):
    return service.update_order(
        db,
        order,
        cliente_nome=payload.cliente_nome,
        veiculo_placa=payload.veiculo_placa,
        veiculo_modelo=payload.veiculo_modelo,
        seguradora_nome=payload.seguradora_nome,
    )


@router.delete("/ordem-servico/{id}")
def delete_ordem_servico(
    order: models.OrdemServico = Depends(get_authorized_order),
    db: Session = Depends(get_db),
    storage: StorageClient = Depends(get_storage),
):
    urls = [photo.caminho_arquivo for photo in order.fotos]
    service.delete_order(db, order)
    for url in urls:
        try:
            storage.delete_object(storage.object_name_from_url(url))
        except StorageError as exc:
            logger.warning("orphan photo left url=%s error=%s", url, exc)
    return {"message": "Ordem de servico excluida com sucesso."}


@router.post("/respostas")
def save_respostas(
    payload: RespostasPayload,
    db: Session = Depends(get_db),
    current_user: models.Usuario = Depends(get_current_user),
):
    total = service.save_answers(
        db,
        current_user,
        payload.os_id,
        [resposta.model_dump() for resposta in payload.respostas],
    )
    return {"message": "Respostas salvas com sucesso.", "total": total}


@router.post("/fotos", response_model=list[FotoResponse], status_code=status.HTTP_201_CREATED)
def upload_fotos(
    os_id: str = Form(...),
    fotos: list[UploadFile] = File(default=[]),
    db: Session = Depends(get_db),
    current_user: models.Usuario = Depends(get_current_user),
    storage: StorageClient = Depends(get_storage),
):
    files = [
        service.UploadedFile(
            filename=foto.filename,
            content_type=foto.content_type,
            data=read_upload(foto.file, settings.UPLOAD_MAX_BYTES),
        )
        for foto in fotos
    ]
    return service.save_photos(
        db,
        current_user,
        storage,
        os_id,
        files,
        max_bytes=settings.UPLOAD_MAX_BYTES,
        max_files=settings.UPLOAD_MAX_FILES,
    )


@router.delete("/fotos/{foto_id}")
def delete_foto(
    foto_id: str,
    db: Session = Depends(get_db),
    current_user: models.Usuario = Depends(get_current_user),
    storage: StorageClient = Depends(get_storage),
):
    service.delete_photo(db, current_user, storage, foto_id)
    return {"message": "Foto excluida com sucesso."}


@router.post("/ordem-servico/{id}/assinatura")
def save_assinatura(
    payload: AssinaturaPayload,
    order: models.OrdemServico = Depends(get_authorized_order),
    db: Session = Depends(get_db),
):
    service.save_signature(db, order, payload.assinatura)
    return {"message": "Assinatura salva com sucesso."}


@router.get("/ordem-servico/{id}/pdf")
def download_pdf(
    id: str,
    db: Session = Depends(get_db),
    current_user: models.Usuario = Depends(get_current_user),
):
    pdf, filename = build_report(db, current_user, id, settings)
    return Response(
        content=pdf,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
