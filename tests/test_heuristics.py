"""Tests for keyword fail-safes."""

import pytest

from cerebro.heuristics import is_in_progress, is_urgent


class TestIsUrgent:
    """Urgency keywords, any case, anywhere in the text."""

    @pytest.mark.parametrize("text", [
        "comprar leite urgente",
        "URGENTE: pagar boleto",
        "send the report, urgent",
        "preciso disso pra ontem",
        "Pra Ontem!",
    ])
    def test_detects_keywords(self, text):
        assert is_urgent(text)

    @pytest.mark.parametrize("text", [
        "comprar leite",
        "urgency is a feeling",
        "pra amanhã",
        "",
    ])
    def test_ignores_other_text(self, text):
        assert not is_urgent(text)


class TestIsInProgress:
    """Progress keywords: leading 'estou ' or 'fazendo'/'andamento' anywhere."""

    @pytest.mark.parametrize("text", [
        "Estou lendo Dom Casmurro",
        "estou estudando cálculo",
        "relatório fazendo agora",
        "projeto em andamento",
    ])
    def test_detects_keywords(self, text):
        assert is_in_progress(text)

    @pytest.mark.parametrize("text", [
        "comprar pão",
        "testou a api",
        "estou",  # no trailing space
        "já fiz o relatório",
    ])
    def test_ignores_other_text(self, text):
        assert not is_in_progress(text)
