"""Unit tests for accent folding, term extraction and keyword matching."""

import pytest

from ops_assistant.core.domain import QueryDomain
from ops_assistant.core.domain.text_analysis import (
    contains_keyword,
    detect_system,
    extract_search_terms,
    normalize_for_search,
)

pytestmark = pytest.mark.unit


class TestNormalizeForSearch:
    def test_lowercases_and_folds_accents(self):
        assert normalize_for_search("¿Cómo CONECTO la Conexión?") == "¿como conecto la conexion?"

    def test_folds_enye(self):
        assert normalize_for_search("Contraseña") == "contrasena"

    def test_empty_text(self):
        assert normalize_for_search("") == ""


class TestExtractSearchTerms:
    def test_drops_stop_words_and_punctuation(self):
        terms = extract_search_terms("¿Cómo me conecto desde casa?")
        assert "conecto" in terms
        assert "casa" in terms
        assert "me" not in terms
        assert "?" not in "".join(terms)

    def test_accented_interrogatives_are_stop_words(self):
        assert extract_search_terms("¿Cómo configuro la impresora? ¿Cuándo? ¿Dónde?") == {
            "configuro",
            "impresora",
        }

    def test_drops_short_tokens(self):
        assert extract_search_terms("a b sap") == {"sap"}

    def test_english_stop_words(self):
        assert extract_search_terms("what is the VPN") == {"vpn"}

    def test_empty_query(self):
        assert extract_search_terms("") == set()


class TestContainsKeyword:
    def test_whole_word_match(self):
        assert contains_keyword("no puedo usar sap hoy", "sap")

    def test_no_partial_word_match(self):
        assert not contains_keyword("sapphire dashboard", "sap")

    def test_phrase_match(self):
        assert contains_keyword("necesito acceso remoto ya", "acceso remoto")

    def test_accented_keyword_matches_folded_text(self):
        assert contains_keyword("problema de conexion", "conexión")


class TestDetectSystem:
    @pytest.mark.parametrize(
        "text,expected",
        [
            ("Error en transacción SAP", QueryDomain.SAP),
            ("Teamcenter no abre", QueryDomain.PLM),
            ("Mensajes EDIFACT rechazados", QueryDomain.EDI),
            ("Zscaler desconectado", QueryDomain.NETWORK),
            ("Outlook no sincroniza", QueryDomain.WORKPLACE),
            ("Servidor VMware caído", QueryDomain.INFRASTRUCTURE),
            ("Correo de phishing recibido", QueryDomain.WORKPLACE),
            ("Reset MFA token", QueryDomain.CYBERSECURITY),
            ("Hola buenos días", QueryDomain.GENERAL),
        ],
    )
    def test_buckets(self, text, expected):
        assert detect_system(text) is expected

    def test_empty_text_is_general(self):
        assert detect_system("") is QueryDomain.GENERAL
