"""Per-domain routing and prompting table.

Each domain is one row of data instead of its own agent class: the keyword
set and code patterns that route a question to it, the prompt addendum used
when answering, and the ticket-form categories it must never suggest.
"""

import re
from dataclasses import dataclass, field

from .query import QueryDomain
from .text_analysis import SYSTEM_KEYWORDS, contains_keyword


@dataclass(frozen=True)
class DomainProfile:
    """Routing and prompting configuration for one domain."""

    domain: QueryDomain
    keywords: tuple[str, ...] = ()
    code_patterns: tuple[str, ...] = ()
    prompt: str = ""
    excluded_ticket_categories: frozenset[str] = field(default_factory=frozenset)

    def matches_keywords(self, normalized_text: str) -> bool:
        return any(contains_keyword(normalized_text, keyword) for keyword in self.keywords)

    def matches_code(self, tokens: list[str]) -> bool:
        """Whether any raw (case-preserved) token looks like one of this domain's codes."""
        return any(re.fullmatch(pattern, token) for token in tokens for pattern in self.code_patterns)

    def excludes(self, category: str | None) -> bool:
        if not category:
            return False
        return category.strip().lower() in {c.lower() for c in self.excluded_ticket_categories}


def _bucket(domain: QueryDomain) -> tuple[str, ...]:
    for bucket_domain, keywords in SYSTEM_KEYWORDS:
        if bucket_domain is domain:
            return keywords
    return ()


NETWORK_KEYWORDS = (
    "zscaler", "zscaler client", "zcc", "vpn", "remote", "remoto", "acceso remoto",
    "remote access", "trabajo desde casa", "trabajar desde casa", "desde casa",
    "work from home", "from home", "conectar", "conecto", "conectarme", "conexion",
    "connect", "connection", "network", "internet", "wifi", "proxy", "firewall",
)

SAP_KEYWORDS = (
    "sap", "sapgui", "sap gui", "fiori", "t-code", "tcode", "transaccion", "transacciones",
    "transaction", "transactions", "autorizacion", "autorizaciones", "authorization",
    "authorizations", "rol sap", "role sap", "roles sap", "posicion sap", "position sap",
)

SAP_CODE_PATTERNS = (
    r"[A-Z]{2}\d{2}",  # SM35, MM01, SU01
    r"[A-Z]{2}\d{2}[A-Z]",  # SM35X, ME21N
    r"SO\d{2}[A-Z]?",  # SO01, SO02X
)

# Routing priority order; GENERAL never matches and is the default.
DOMAIN_PROFILES: tuple[DomainProfile, ...] = (
    DomainProfile(
        domain=QueryDomain.NETWORK,
        keywords=NETWORK_KEYWORDS,
        prompt=(
            "You specialise in remote access and connectivity (Zscaler, VPN, proxy, "
            "firewall). Ask whether the user is in the office or remote when it matters."
        ),
        excluded_ticket_categories=frozenset({"SAP"}),
    ),
    DomainProfile(
        domain=QueryDomain.SAP,
        keywords=SAP_KEYWORDS,
        code_patterns=SAP_CODE_PATTERNS,
        prompt=(
            "You specialise in SAP: transactions, roles, positions and authorizations. "
            "Quote transaction codes exactly as they appear in the context."
        ),
    ),
    DomainProfile(
        domain=QueryDomain.PLM,
        keywords=_bucket(QueryDomain.PLM),
        prompt="You specialise in PLM and CAD tooling such as Teamcenter and CATIA.",
    ),
    DomainProfile(
        domain=QueryDomain.EDI,
        keywords=_bucket(QueryDomain.EDI),
        prompt="You specialise in EDI and B2B supplier/customer portals.",
    ),
    DomainProfile(
        domain=QueryDomain.MES,
        keywords=_bucket(QueryDomain.MES),
        prompt="You specialise in manufacturing execution systems and shop-floor integration.",
    ),
    DomainProfile(
        domain=QueryDomain.WORKPLACE,
        keywords=_bucket(QueryDomain.WORKPLACE),
        prompt="You specialise in workplace tools: Outlook, Teams, Office 365, printers and laptops.",
    ),
    DomainProfile(
        domain=QueryDomain.INFRASTRUCTURE,
        keywords=_bucket(QueryDomain.INFRASTRUCTURE),
        prompt="You specialise in servers, virtualisation, directory services and backups.",
    ),
    DomainProfile(
        domain=QueryDomain.CYBERSECURITY,
        keywords=_bucket(QueryDomain.CYBERSECURITY),
        prompt="You specialise in passwords, MFA, phishing and device security.",
    ),
    DomainProfile(domain=QueryDomain.GENERAL),
)

_PROFILES_BY_DOMAIN = {profile.domain: profile for profile in DOMAIN_PROFILES}


def profile_for(domain: QueryDomain) -> DomainProfile:
    """Look up the profile row of a domain."""
    return _PROFILES_BY_DOMAIN[domain]
