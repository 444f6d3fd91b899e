"""Checklist answers as a variant keyed by the item kind.

A stored answer row has two loosely typed columns (``status`` and
``observacao``) whose meaning depends on the item: choice items keep the
selected label in ``status`` and free text in ``observacao``; range and
number items keep the numeric value, as text, in ``observacao``.
"""

from dataclasses import dataclass
from typing import Optional, Union

from app.core.errors import ValidationError
from app.db import models

NOT_FILLED = "Não preenchido"

RANGE_MIN = 0.0
RANGE_MAX = 100.0


@dataclass(frozen=True)
class ChoiceAnswer:
    status: Optional[str] = None
    observation: Optional[str] = None


@dataclass(frozen=True)
class RangeAnswer:
    value: Optional[str] = None


@dataclass(frozen=True)
class NumberAnswer:
    value: Optional[str] = None


Answer = Union[ChoiceAnswer, RangeAnswer, NumberAnswer]


@dataclass(frozen=True)
class DisplayLines:
    status: str
    observation: Optional[str] = None


def _clean(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def answer_from_row(item: models.ChecklistItem, row: Optional[models.ChecklistResposta]) -> Optional[Answer]:
    if row is None:
        return None
    if item.tipo == models.ITEM_KIND_OPTIONS:
        return ChoiceAnswer(status=_clean(row.status), observation=_clean(row.observacao))
    if item.tipo == models.ITEM_KIND_RANGE:
        return RangeAnswer(value=_clean(row.observacao))
    if item.tipo == models.ITEM_KIND_NUMBER:
        return NumberAnswer(value=_clean(row.observacao))
    raise ValueError(f"tipo de item desconhecido: {item.tipo}")


def display_lines(answer: Optional[Answer]) -> DisplayLines:
    if answer is None:
        return DisplayLines(status=NOT_FILLED)
    if isinstance(answer, ChoiceAnswer):
        return DisplayLines(status=answer.status or NOT_FILLED, observation=answer.observation)
    if isinstance(answer, (RangeAnswer, NumberAnswer)):
        return DisplayLines(status=answer.value or NOT_FILLED)
    raise TypeError(f"resposta desconhecida: {answer!r}")


def _parse_number(item: models.ChecklistItem, raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        return float(raw.replace(",", "."))
    except ValueError:
        raise ValidationError(f"Valor numerico invalido para o item '{item.nome}'.")


def answer_from_submission(
    item: models.ChecklistItem, status: object = None, observacao: object = None
) -> Answer:
    status_text = _clean(status)
    observation = _clean(observacao)
    if item.tipo == models.ITEM_KIND_OPTIONS:
        options = item.opcoes or []
        if status_text is not None and options and status_text not in options:
            raise ValidationError(f"Status '{status_text}' invalido para o item '{item.nome}'.")
        return ChoiceAnswer(status=status_text, observation=observation)
    if item.tipo == models.ITEM_KIND_RANGE:
        value = _parse_number(item, observation)
        if value is not None and not RANGE_MIN <= value <= RANGE_MAX:
            raise ValidationError(
                f"Valor do item '{item.nome}' deve estar entre {RANGE_MIN:g} e {RANGE_MAX:g}."
            )
        return RangeAnswer(value=observation)
    if item.tipo == models.ITEM_KIND_NUMBER:
        _parse_number(item, observation)
        return NumberAnswer(value=observation)
    raise ValueError(f"tipo de item desconhecido: {item.tipo}")


def answer_columns(answer: Answer) -> tuple[Optional[str], Optional[str]]:
    """Returns the ``(status, observacao)`` pair persisted for an answer."""
    if isinstance(answer, ChoiceAnswer):
        return answer.status, answer.observation
    if isinstance(answer, (RangeAnswer, NumberAnswer)):
        return None, answer.value
    raise TypeError(f"resposta desconhecida: {answer!r}")
