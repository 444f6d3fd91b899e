from dataclasses import dataclass
from typing import BinaryIO, Optional


@dataclass(frozen=True)
class UploadCheck:
    ok: bool
    error: Optional[str] = None


def check_image_upload(filename: Optional[str], content_type: Optional[str], size: int, max_bytes: int) -> UploadCheck:
    label = filename or "arquivo"
    if not content_type or not content_type.startswith("image/"):
        return UploadCheck(False, f"Tipo de arquivo invalido em '{label}'. Apenas imagens sao permitidas.")
    if size <= 0:
        return UploadCheck(False, f"Arquivo '{label}' esta vazio.")
    if size > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        return UploadCheck(False, f"Arquivo '{label}' excede o limite de {limit_mb:g} MB.")
    return UploadCheck(True)


def read_upload(stream: BinaryIO, max_bytes: int) -> bytes:
    """Reads at most one byte past the limit so oversized files fail the size check."""
    return stream.read(max_bytes + 1)


def check_upload_batch(count: int, max_files: int) -> UploadCheck:
    if count == 0:
        return UploadCheck(False, "Nenhuma foto enviada.")
    if count > max_files:
        return UploadCheck(False, f"Envie no maximo {max_files} fotos por vez.")
    return UploadCheck(True)
