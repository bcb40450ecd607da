"""Text helpers shared by classification, expansion and keyword search.

Queries arrive in Spanish or English, often without accents, so matching is
done on accent-folded lowercase text.
"""

import re
from functools import lru_cache

from .query import QueryDomain

_ACCENT_MAP = str.maketrans(
    {
        "á": "a",
        "é": "e",
        "í": "i",
        "ó": "o",
        "ú": "u",
        "ñ": "n",
        "ü": "u",
        "à": "a",
        "è": "e",
        "ì": "i",
        "ò": "o",
        "ù": "u",
    }
)

_TERM_SPLIT = re.compile(r"[\s?¿!¡,.:;\"'()]+")

SPANISH_STOP_WORDS = frozenset(
    """
    que es el la los las un una de del en por para como cual donde cuando quien
    qué cuál dónde cuándo quién me te se nos mi tu su este esta ese esa centro
    con sin sobre entre hasta pero más muy ya no si todo todos toda todas otro
    otra otros otras
    """.split()
)

ENGLISH_STOP_WORDS = frozenset(
    """
    what is the a an of in for to how which where when who it its this that
    these those are was were be been being have has had do does did will would
    can could should may might must shall and or but not with from by at on about
    """.split()
)

DOMAIN_STOP_WORDS = frozenset({"plant", "planta"})

STOP_WORDS = SPANISH_STOP_WORDS | ENGLISH_STOP_WORDS | DOMAIN_STOP_WORDS

# Ordered from most specific vocabulary to most generic; first match wins.
SYSTEM_KEYWORDS: tuple[tuple[QueryDomain, tuple[str, ...]], ...] = (
    (
        QueryDomain.SAP,
        (
            "sap", "fiori", "t-code", "tcode", "transaccion", "transacción",
            "authorization", "autorización", "sapgui", "sap gui", "abap", "bapi", "idoc sap",
        ),
    ),
    (
        QueryDomain.PLM,
        (
            "teamcenter", "plm", "catia", "siemens nx", "windchill", "cad", "bom",
            "bill of materials", "drawing", "design",
        ),
    ),
    (
        QueryDomain.EDI,
        (
            "edi", "edifact", "as2", "seeburger", "b2b", "beone", "buyone", "web-edi",
            "supplier portal",
        ),
    ),
    (
        QueryDomain.MES,
        ("mes", "blade", "scada", "plc", "opc", "produccion", "producción", "manufacturing", "shop floor"),
    ),
    (
        QueryDomain.NETWORK,
        (
            "zscaler", "vpn", "remote access", "acceso remoto", "conectividad", "connectivity",
            "firewall", "proxy",
        ),
    ),
    (
        QueryDomain.WORKPLACE,
        (
            "outlook", "teams", "office 365", "o365", "onedrive", "sharepoint", "printer",
            "impresora", "laptop", "email", "correo",
        ),
    ),
    (
        QueryDomain.INFRASTRUCTURE,
        (
            "server", "servidor", "vmware", "azure", "backup", "active directory", "dns", "dhcp",
            "hyper-v", "datacenter",
        ),
    ),
    (
        QueryDomain.CYBERSECURITY,
        (
            "password", "contraseña", "mfa", "phishing", "malware", "security", "seguridad",
            "encryption", "cifrado", "bitlocker",
        ),
    ),
)


def normalize_for_search(text: str) -> str:
    """Lowercase and fold common accented Latin characters to their base letter."""
    if not text:
        return ""
    return text.lower().translate(_ACCENT_MAP)


def extract_search_terms(query: str, min_length: int = 2) -> set[str]:
    """Split a query into distinct lowercase search terms without stop words.

    Stop words match with or without accents, so "cómo" is dropped like "como".
    """
    if not query:
        return set()
    terms = set()
    for token in _TERM_SPLIT.split(query.lower()):
        if len(token) < min_length or normalize_for_search(token) in STOP_WORDS:
            continue
        terms.add(token)
    return terms


@lru_cache(maxsize=1024)
def keyword_pattern(keyword: str) -> re.Pattern[str]:
    """Word-boundary pattern for an accent-folded keyword or phrase."""
    return re.compile(rf"(?<!\w){re.escape(normalize_for_search(keyword))}(?!\w)")


def contains_keyword(normalized_text: str, keyword: str) -> bool:
    """Whether the already-normalized text contains the keyword as a whole word or phrase."""
    return keyword_pattern(keyword).search(normalized_text) is not None


def detect_system(text: str) -> QueryDomain:
    """Map free text to the first matching system bucket, or GENERAL."""
    normalized = normalize_for_search(text)
    if not normalized:
        return QueryDomain.GENERAL
    for domain, keywords in SYSTEM_KEYWORDS:
        if any(contains_keyword(normalized, keyword) for keyword in keywords):
            return domain
    return QueryDomain.GENERAL
