"""Synonym expansion and decomposition of user questions."""

import logging
import re

from ..domain.text_analysis import contains_keyword, normalize_for_search

logger = logging.getLogger(__name__)

# (trigger keywords, expansion phrases). Every group whose trigger appears
# in the question contributes its phrases.
SYNONYM_GROUPS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    # Remote access / work from home
    (
        ("casa", "home", "remoto", "remote", "conectar", "conecto", "conectarme", "connect"),
        ("Zscaler VPN remote access", "acceso remoto"),
    ),
    # Connectivity
    (
        ("vpn", "red", "network", "internet", "conexion", "wifi"),
        ("Zscaler remote access", "Internet Web Page"),
    ),
    # Zscaler / proxy
    (
        ("zscaler", "proxy"),
        ("remote access VPN", "Zscaler ticket", "Zscaler problem issue"),
    ),
    # Problems
    (
        ("no funciona", "problema", "error", "not working", "falla", "fallo", "issue"),
        ("troubleshooting support request", "ticket problem issue"),
    ),
    # User and access management
    (
        ("usuario", "user", "crear", "create", "nuevo", "new", "acceso", "access"),
        ("user management", "Customer extranet user management"),
    ),
    # Customer portals
    (
        ("portal", "extranet", "b2b", "vw", "volkswagen", "bmw", "ford"),
        ("B2B Portals Customer Extranets", "Customer extranet user management"),
    ),
    # Logging in to a portal
    (
        ("acceder", "entrar", "login"),
        ("B2B Portals Customer Extranets access",),
    ),
    # Plants and locations
    (
        ("centro", "centre", "plant", "planta", "fabrica", "factory"),
        ("centre plant location",),
    ),
    # Email
    (
        ("correo", "email", "outlook", "mail"),
        ("Email Outlook",),
    ),
    # SAP
    (
        ("sap",),
        ("SAP transaction user", "SAP new user creation", "SAP usuario nuevo"),
    ),
)

_SAP_USER_TRIGGERS = ("usuario", "user", "crear", "create", "nuevo", "new", "abrir", "ticket")

KNOWN_SYSTEMS = (
    "sap", "vpn", "zscaler", "teams", "outlook", "sharepoint", "confluence", "jira",
    "teamcenter", "bmw", "volkswagen", "vw", "ford", "b2b",
)

_WORD_SPLIT = re.compile(r"[\s?¿!¡,.]+")
_CONJUNCTION_SPLIT = re.compile(r"\s+(?:y|and)\s+", re.IGNORECASE)
_PLANT_CODE = re.compile(r"[A-Z]{2,4}")

MIN_SUB_QUERY_CHARS = 3


class QueryExpander:
    """Widens recall by adding synonyms and splitting compound questions."""

    def expand_with_synonyms(self, query: str) -> str:
        """Append canonical expansion phrases for every matched trigger group.

        The result is only used for searching, never shown to the user.
        """
        normalized = normalize_for_search(query)
        expansions: list[str] = []

        for triggers, phrases in SYNONYM_GROUPS:
            if any(contains_keyword(normalized, trigger) for trigger in triggers):
                expansions.extend(phrases)

        if contains_keyword(normalized, "sap") and any(
            contains_keyword(normalized, t) for t in _SAP_USER_TRIGGERS
        ):
            expansions.extend(("SAP User Request", "New SAP User", "SAP Access Request"))

        if any(contains_keyword(normalized, t) for t in ("centro", "centre", "plant", "planta")):
            expansions.extend(self._plant_codes(query))

        unique = list(dict.fromkeys(e for e in expansions if e.lower() not in query.lower()))
        if not unique:
            return query

        expanded = f"{query} {' '.join(unique)}"
        logger.info(f"Query expanded: '{query}' -> '{expanded}'")
        return expanded

    def decompose(self, query: str) -> list[str]:
        """Split a compound question into independently searchable sub-queries.

        The original question is always the first element.
        """
        sub_queries = [query]
        normalized = normalize_for_search(query)

        parts = [p.strip() for p in _CONJUNCTION_SPLIT.split(query)]
        if len(parts) > 1:
            sub_queries.extend(parts)

        if query.count("?") > 1:
            sub_queries.extend(f"{p.strip()}?" for p in query.split("?") if p.strip())

        wants_ticket = contains_keyword(normalized, "ticket")
        wants_howto = any(contains_keyword(normalized, w) for w in ("como", "how"))
        for entity in self.extract_entities(query):
            if wants_ticket:
                sub_queries.append(f"ticket {entity}")
            if wants_howto:
                sub_queries.append(f"how to {entity}")

        result = [
            q
            for q in dict.fromkeys(sub_queries)
            if q == query or len(q.strip("?¿ ")) >= MIN_SUB_QUERY_CHARS
        ]
        if len(result) > 1:
            logger.info(f"Query decomposition: {result}")
        return result

    def extract_entities(self, query: str) -> list[str]:
        """Known system names and upper-case plant codes mentioned in the query."""
        normalized = normalize_for_search(query)
        entities = [s.upper() for s in KNOWN_SYSTEMS if contains_keyword(normalized, s)]
        entities.extend(self._plant_codes(query))
        return list(dict.fromkeys(entities))

    @staticmethod
    def _plant_codes(query: str) -> list[str]:
        words = [w for w in _WORD_SPLIT.split(query) if w]
        return [w for w in words if _PLANT_CODE.fullmatch(w)]
