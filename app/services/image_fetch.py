import base64
import binascii
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from io import BytesIO
from typing import Optional

import requests
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger("vistoria.report")

_MIME_BY_FORMAT = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
}


class UpstreamFetchError(Exception):
    pass


@dataclass(frozen=True)
class ResolvedImage:
    data: bytes
    width: int
    height: int
    mime: str

    @property
    def data_uri(self) -> str:
        return f"data:{self.mime};base64," + base64.b64encode(self.data).decode("ascii")


def load_image(data: bytes) -> ResolvedImage:
    try:
        with Image.open(BytesIO(data)) as image:
            width, height = image.size
            fmt = image.format or ""
    except (UnidentifiedImageError, OSError) as exc:
        raise UpstreamFetchError(f"conteudo nao e uma imagem: {exc}") from exc
    mime = _MIME_BY_FORMAT.get(fmt)
    if mime is None:
        # Formats the PDF backend cannot embed are normalized to PNG.
        with Image.open(BytesIO(data)) as image:
            out = BytesIO()
            image.convert("RGBA").save(out, format="PNG")
        return ResolvedImage(out.getvalue(), width, height, "image/png")
    return ResolvedImage(data, width, height, mime)


def decode_data_url(value: str) -> bytes:
    """Decodes a ``data:image/...;base64,`` URL; plain base64 is accepted too."""
    payload = value.strip()
    if payload.startswith("data:"):
        header, _, payload = payload.partition(",")
        if ";base64" not in header or not header[5:].startswith("image/"):
            raise ValueError("assinatura deve ser uma imagem em base64")
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ValueError("base64 invalido") from exc


def fetch_image(url: str, timeout: float) -> ResolvedImage:
    try:
        resp = requests.get(url, timeout=timeout)
    except requests.RequestException as exc:
        raise UpstreamFetchError(f"falha na requisicao: {exc}") from exc
    if resp.status_code != 200:
        raise UpstreamFetchError(f"status_code={resp.status_code}")
    return load_image(resp.content)


def _fetch_or_none(url: str, timeout: float) -> Optional[ResolvedImage]:
    try:
        return fetch_image(url, timeout)
    except UpstreamFetchError as exc:
        logger.warning("image fetch failed url=%s error=%s", url, exc)
        return None


def fetch_images(urls: list[str], timeout: float, max_workers: int = 8) -> list[ResolvedImage]:
    """Downloads every URL in parallel; failed downloads are dropped, order is kept."""
    if not urls:
        return []
    workers = max(1, min(max_workers, len(urls)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="report-img") as pool:
        results = list(pool.map(lambda url: _fetch_or_none(url, timeout), urls))
    return [image for image in results if image is not None]
