import logging
import re
import unicodedata
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from app.checklist.answers import display_lines
from app.checklist.service import OrderView, aggregate_order
from app.core.config import Settings
from app.core.errors import AppError, ReportError
from app.db import models
from app.services.image_fetch import ResolvedImage, UpstreamFetchError, decode_data_url, fetch_images, load_image
from app.services.os_pdf import render_report_pdf
from app.services.report_layout import ChecklistEntry, ReportContent, plan_report

logger = logging.getLogger("vistoria.report")


def format_inspection_date(value: Optional[datetime], tz_name: str) -> str:
    if value is None:
        return ""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(ZoneInfo(tz_name)).strftime("%d/%m/%Y, %H:%M:%S")


def _slug(value: Optional[str]) -> str:
    text = unicodedata.normalize("NFKD", value or "").encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^A-Za-z0-9]+", "-", text).strip("-")
    return text or "sem-dados"


def report_filename(order: models.OrdemServico) -> str:
    return f"checklist-{_slug(order.veiculo_modelo)}-{_slug(order.veiculo_placa)}.pdf"


def _load_header(path: str) -> Optional[ResolvedImage]:
    header = Path(path)
    if not path or not header.is_file():
        return None
    try:
        return load_image(header.read_bytes())
    except UpstreamFetchError as exc:
        logger.warning("header image ignored path=%s error=%s", path, exc)
        return None


def _load_signature(value: Optional[str]) -> Optional[ResolvedImage]:
    if not value:
        return None
    try:
        return load_image(decode_data_url(value))
    except (ValueError, UpstreamFetchError) as exc:
        logger.warning("signature ignored error=%s", exc)
        return None


def build_report_content(view: OrderView, settings: Settings) -> ReportContent:
    order = view.order
    entries = []
    for item in view.items:
        lines = display_lines(view.answer_for(item))
        entries.append(ChecklistEntry(ordem=item.ordem, nome=item.nome, status=lines.status, observation=lines.observation))
    photos = fetch_images(
        [photo.caminho_arquivo for photo in view.photos],
        timeout=settings.REPORT_IMAGE_TIMEOUT,
        max_workers=settings.REPORT_IMAGE_WORKERS,
    )
    if len(photos) < len(view.photos):
        logger.warning("report os_id=%s photos skipped=%s", order.id, len(view.photos) - len(photos))
    return ReportContent(
        cliente_nome=order.cliente_nome,
        veiculo_modelo=order.veiculo_modelo,
        veiculo_placa=order.veiculo_placa,
        inspected_at=format_inspection_date(order.data, settings.REPORT_TIMEZONE),
        seguradora_nome=order.seguradora_nome,
        entries=entries,
        photos=photos,
        signature=_load_signature(order.assinatura_cliente),
        header=_load_header(settings.REPORT_HEADER_IMAGE),
    )


def build_report(db: Session, user: models.Usuario, order_id: object, settings: Settings) -> tuple[bytes, str]:
    """Produces the whole PDF in memory; nothing is streamed before it is complete."""
    try:
        view = aggregate_order(db, user, order_id)
        content = build_report_content(view, settings)
        pdf = render_report_pdf(plan_report(content))
    except AppError:
        raise
    except Exception as exc:
        logger.exception("report failed os_id=%s", order_id)
        raise ReportError() from exc
    logger.info("report generated os_id=%s bytes=%s", view.order.id, len(pdf))
    return pdf, report_filename(view.order)
