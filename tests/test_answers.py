import unittest

from app.checklist.answers import (
    NOT_FILLED,
    ChoiceAnswer,
    NumberAnswer,
    RangeAnswer,
    answer_columns,
    answer_from_row,
    answer_from_submission,
    display_lines,
)
from app.core.errors import ValidationError
from app.db import models


def _item(tipo, opcoes=None, nome="Item"):
    return models.ChecklistItem(id=1, ordem=1, nome=nome, tipo=tipo, opcoes=opcoes)


class DisplayLinesTests(unittest.TestCase):
    def test_missing_answer_is_not_filled(self):
        lines = display_lines(None)
        self.assertEqual(lines.status, NOT_FILLED)
        self.assertIsNone(lines.observation)

    def test_choice_shows_status_and_observation(self):
        item = _item(models.ITEM_KIND_OPTIONS, ["OK", "Avariado"])
        row = models.ChecklistResposta(item_id=1, status="Avariado", observacao="Risco na lateral")
        lines = display_lines(answer_from_row(item, row))
        self.assertEqual(lines.status, "Avariado")
        self.assertEqual(lines.observation, "Risco na lateral")

    def test_choice_without_status_falls_back(self):
        item = _item(models.ITEM_KIND_OPTIONS, ["OK"])
        row = models.ChecklistResposta(item_id=1, status=None, observacao="ver depois")
        lines = display_lines(answer_from_row(item, row))
        self.assertEqual(lines.status, NOT_FILLED)
        self.assertEqual(lines.observation, "ver depois")

    def test_range_value_is_the_status_and_hides_observation(self):
        item = _item(models.ITEM_KIND_RANGE)
        row = models.ChecklistResposta(item_id=1, status="ignored", observacao="75")
        answer = answer_from_row(item, row)
        self.assertEqual(answer, RangeAnswer(value="75"))
        lines = display_lines(answer)
        self.assertEqual(lines.status, "75")
        self.assertIsNone(lines.observation)

    def test_number_without_value_is_not_filled(self):
        item = _item(models.ITEM_KIND_NUMBER)
        row = models.ChecklistResposta(item_id=1, status=None, observacao="  ")
        self.assertEqual(display_lines(answer_from_row(item, row)).status, NOT_FILLED)


class SubmissionTests(unittest.TestCase):
    def test_choice_status_must_be_an_option(self):
        item = _item(models.ITEM_KIND_OPTIONS, ["OK", "Avariado"], nome="Capo")
        with self.assertRaises(ValidationError):
            answer_from_submission(item, "Quebrado", None)

    def test_choice_roundtrips_to_columns(self):
        item = _item(models.ITEM_KIND_OPTIONS, ["OK", "Avariado"])
        answer = answer_from_submission(item, " OK ", " ")
        self.assertEqual(answer, ChoiceAnswer(status="OK", observation=None))
        self.assertEqual(answer_columns(answer), ("OK", None))

    def test_range_rejects_out_of_bounds(self):
        item = _item(models.ITEM_KIND_RANGE)
        with self.assertRaises(ValidationError):
            answer_from_submission(item, None, "150")

    def test_range_accepts_decimal_comma(self):
        item = _item(models.ITEM_KIND_RANGE)
        answer = answer_from_submission(item, None, "50,5")
        self.assertEqual(answer_columns(answer), (None, "50,5"))

    def test_number_rejects_text(self):
        item = _item(models.ITEM_KIND_NUMBER)
        with self.assertRaises(ValidationError):
            answer_from_submission(item, None, "muito")

    def test_number_keeps_value_in_observation_column(self):
        item = _item(models.ITEM_KIND_NUMBER)
        answer = answer_from_submission(item, "x", "12345")
        self.assertEqual(answer, NumberAnswer(value="12345"))
        self.assertEqual(answer_columns(answer), (None, "12345"))
