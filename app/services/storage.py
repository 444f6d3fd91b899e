import logging
import pathlib
import uuid
from urllib.parse import unquote, urlparse

from fastapi import Request

from app.core.config import Settings
from app.core.errors import AppError

logger = logging.getLogger("vistoria.storage")

LOCAL_URL_PREFIX = "/uploads"
GCS_PUBLIC_HOST = "https://storage.googleapis.com"


class StorageError(AppError):
    default_message = "Erro ao acessar o armazenamento de arquivos."


class StorageClient:
    """Photo storage on a GCS bucket, or on a local directory served under /uploads."""

    def __init__(
        self,
        bucket_name: str | None = None,
        local_dir: str = "uploads",
        public_base_url: str = "http://localhost:8000",
        client=None,
    ) -> None:
        self.bucket_name = bucket_name
        self.use_local = not bucket_name
        self.base_dir = pathlib.Path(local_dir).resolve()
        self.public_base_url = public_base_url.rstrip("/")
        if self.use_local:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            self._client = None
        elif client is not None:
            self._client = client
        else:
            from google.cloud import storage

            self._client = storage.Client()

    @classmethod
    def from_settings(cls, settings: Settings) -> "StorageClient":
        return cls(
            bucket_name=settings.GCS_BUCKET_PHOTOS,
            local_dir=settings.LOCAL_STORAGE_DIR,
            public_base_url=settings.PUBLIC_BASE_URL,
        )

    def _bucket(self):
        if not self.bucket_name or not self._client:
            raise StorageError("GCS_BUCKET_PHOTOS nao configurado.")
        return self._client.bucket(self.bucket_name)

    @staticmethod
    def build_object_name(os_id: int, filename: str) -> str:
        safe_name = pathlib.PurePath(filename or "foto").name.replace(" ", "_")
        return f"ordens/{os_id}/{uuid.uuid4().hex}-{safe_name}"

    def public_url(self, object_name: str) -> str:
        if self.use_local:
            return f"{self.public_base_url}{LOCAL_URL_PREFIX}/{object_name}"
        return f"{GCS_PUBLIC_HOST}/{self.bucket_name}/{object_name}"

    def object_name_from_url(self, url: str) -> str:
        path = unquote(urlparse(url).path)
        if self.use_local:
            prefix = f"{LOCAL_URL_PREFIX}/"
        else:
            prefix = f"/{self.bucket_name}/"
        if not path.startswith(prefix):
            raise StorageError(f"URL fora do armazenamento configurado: {url}")
        return path[len(prefix):]

    def upload_bytes(self, content: bytes, object_name: str, content_type: str | None = None) -> str:
        if self.use_local:
            full_path = self.base_dir / object_name
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_bytes(content)
        else:
            blob = self._bucket().blob(object_name)
            blob.upload_from_string(content, content_type=content_type)
        logger.info("stored object=%s size=%s", object_name, len(content))
        return self.public_url(object_name)

    def delete_object(self, object_name: str) -> None:
        if self.use_local:
            full_path = (self.base_dir / object_name).resolve()
            if self.base_dir not in full_path.parents:
                raise StorageError("Caminho de arquivo invalido.")
            full_path.unlink(missing_ok=True)
        else:
            from google.api_core.exceptions import NotFound

            blob = self._bucket().blob(object_name)
            try:
                blob.delete()
            except NotFound:
                logger.warning("object already missing object=%s", object_name)
        logger.info("deleted object=%s", object_name)


def get_storage(request: Request) -> StorageClient:
    storage = getattr(request.app.state, "storage", None)
    if storage is None:
        raise StorageError("Armazenamento nao inicializado.")
    return storage
