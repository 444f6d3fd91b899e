from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field


class OrdemServicoCreate(BaseModel):
    cliente_nome: str
    veiculo_placa: str
    veiculo_modelo: str
    seguradora_nome: Optional[str] = None
    oficina_id: Optional[int] = None


class OrdemServicoUpdate(BaseModel):
    cliente_nome: str
    veiculo_placa: str
    veiculo_modelo: str
    seguradora_nome: Optional[str] = None


class OrdemServicoResponse(BaseModel):
    id: int
    oficina_id: int
    cliente_nome: str
    veiculo_placa: str
    veiculo_modelo: str
    seguradora_nome: Optional[str] = None
    data: datetime

    class Config:
        from_attributes = True


class OrdemServicoPage(BaseModel):
    data: list[OrdemServicoResponse]
    totalItems: int
    totalPages: int
    currentPage: int


class ChecklistItemResponse(BaseModel):
    id: int
    ordem: int
    nome: str
    tipo: str
    opcoes: Optional[list[str]] = None

    class Config:
        from_attributes = True


class RespostaResponse(BaseModel):
    item_id: int
    status: Optional[str] = None
    observacao: Optional[str] = None

    class Config:
        from_attributes = True


class FotoResponse(BaseModel):
    id: int
    os_id: int
    caminho_arquivo: str
    created_at: datetime

    class Config:
        from_attributes = True


class OrdemServicoDetail(OrdemServicoResponse):
    assinatura_cliente: Optional[str] = None
    itens: list[ChecklistItemResponse] = Field(default_factory=list)
    respostas: list[RespostaResponse] = Field(default_factory=list)
    fotos: list[FotoResponse] = Field(default_factory=list)


class RespostaPayload(BaseModel):
    item_id: Any
    status: Optional[Any] = None
    observacao: Optional[Any] = None


class RespostasPayload(BaseModel):
    os_id: Any
    respostas: list[RespostaPayload]


class AssinaturaPayload(BaseModel):
    assinatura: Optional[str] = None
