"""Prompt templates and canned responses for the operations assistant."""

from dataclasses import dataclass

from ..domain import QueryDomain, QueryIntent

SYSTEM_PROMPT = """You are the IT operations assistant of a multinational manufacturing company.
You answer employees' IT questions in the language they used (Spanish or English).

## How to use the context
- The context is ordered by reliability. Validated solutions from resolved tickets
  come first: prefer them over anything else.
- User corrections override documentation that contradicts them.
- When a ticket form in the context matches the request, give its link.
- Never invent transaction codes, URLs or procedures that are not in the context.
- If the context does not answer the question, say so and suggest opening a ticket.

## Format
- Short paragraphs and numbered steps for procedures.
- Markdown links for every URL you cite.
"""

INTENT_GUIDANCE: dict[QueryIntent, str] = {
    QueryIntent.GENERAL: "",
    QueryIntent.TICKET_REQUEST: (
        "The user wants to open a support ticket. Prioritize showing the specific ticket URL."
    ),
    QueryIntent.HOW_TO: (
        "The user wants step-by-step instructions. Provide detailed procedures from documentation."
    ),
    QueryIntent.LOOKUP: (
        "The user is looking up reference data. Answer with the exact value from the context."
    ),
    QueryIntent.TROUBLESHOOTING: (
        "The user has a problem. Start with validated solutions, then the most likely fixes, "
        "and end with the ticket to open if nothing works."
    ),
}

ROUTER_PROMPT = """Classify this IT support query into ONE category.

Categories: SAP, NETWORK, PLM, EDI, MES, WORKPLACE, INFRASTRUCTURE, CYBERSECURITY, GENERAL

Reply with ONLY one word from the list above."""

LOW_CONFIDENCE_RESPONSE = (
    "No encuentro información específica sobre este tema en mi base de conocimientos. "
    "Te recomiendo abrir un ticket de soporte para que el equipo de IT pueda ayudarte "
    "con tu consulta."
)

GENERAL_TICKET_LABEL = "Abrir ticket de soporte general"

EMPTY_QUERY_RESPONSE = "Por favor, escribe tu pregunta."

QUERY_TOO_LONG_RESPONSE = "La pregunta es demasiado larga. Resúmela en unas pocas frases."

LLM_FAILURE_RESPONSE = (
    "Lo siento, no he podido generar una respuesta en este momento. "
    "Inténtalo de nuevo en unos minutos."
)

CANCELLED_RESPONSE = "La consulta fue cancelada."


@dataclass(frozen=True)
class ClarificationTemplate:
    """Follow-up questions asked when a query is too vague to search."""

    domain: QueryDomain
    hints: tuple[str, ...]
    spanish: str
    english: str


CLARIFICATIONS: tuple[ClarificationTemplate, ...] = (
    ClarificationTemplate(
        domain=QueryDomain.SAP,
        hints=("sap",),
        spanish=(
            "Entiendo que tienes un problema con SAP. Para poder ayudarte mejor:\n\n"
            "- ¿Qué transacción estás intentando usar? (ej: SU01, SE38, MM01)\n"
            "- ¿Te aparece algún código de error específico?\n"
            "- ¿Es un problema de acceso, autorización o de ejecución?"
        ),
        english=(
            "I understand you have a SAP issue. To help you better:\n\n"
            "- Which transaction are you trying to use? (e.g., SU01, SE38, MM01)\n"
            "- Do you see any specific error code?\n"
            "- Is it an access, authorization, or execution problem?"
        ),
    ),
    ClarificationTemplate(
        domain=QueryDomain.NETWORK,
        hints=("red", "network", "internet", "conexion", "connection", "vpn", "zscaler"),
        spanish=(
            "Veo que tienes problemas de red o conexión. Para diagnosticar correctamente:\n\n"
            "- ¿Estás en la oficina o trabajando remoto (VPN/Zscaler)?\n"
            "- ¿Es un problema con una aplicación específica o con todo internet?\n"
            "- ¿El problema empezó hoy o lleva tiempo ocurriendo?"
        ),
        english=(
            "I see you're having network/connection issues. To diagnose correctly:\n\n"
            "- Are you in the office or working remotely (VPN/Zscaler)?\n"
            "- Is this affecting a specific application or all internet?\n"
            "- Did this start today or has it been ongoing?"
        ),
    ),
    ClarificationTemplate(
        domain=QueryDomain.CYBERSECURITY,
        hints=("acceso", "access", "permiso", "permission", "password", "contraseña"),
        spanish=(
            "Entiendo que necesitas ayuda con accesos o permisos. ¿Podrías especificar:\n\n"
            "- ¿A qué sistema o aplicación necesitas acceso?\n"
            "- ¿Es un acceso nuevo o algo que tenías y dejó de funcionar?\n"
            "- ¿Te aparece algún mensaje de error específico?"
        ),
        english=(
            "I understand you need help with access or permissions. Could you specify:\n\n"
            "- Which system or application do you need access to?\n"
            "- Is this a new access request or something that stopped working?\n"
            "- Do you see any specific error message?"
        ),
    ),
    ClarificationTemplate(
        domain=QueryDomain.WORKPLACE,
        hints=("email", "correo", "outlook", "teams"),
        spanish=(
            "Entiendo que tienes un problema con correo o comunicaciones. ¿Podrías indicarme:\n\n"
            "- ¿Es Outlook, Teams u otra aplicación?\n"
            "- ¿Qué error o comportamiento estás viendo?\n"
            "- ¿Afecta solo a ti o a más compañeros?"
        ),
        english=(
            "I understand you have an email/communication issue. Could you tell me:\n\n"
            "- Is it Outlook, Teams, or another application?\n"
            "- What error or behavior are you seeing?\n"
            "- Does it affect only you or other colleagues too?"
        ),
    ),
)

DEFAULT_CLARIFICATION = ClarificationTemplate(
    domain=QueryDomain.GENERAL,
    hints=(),
    spanish=(
        "Necesito un poco más de información para ayudarte:\n\n"
        "- ¿Qué sistema o aplicación está involucrado?\n"
        "- ¿Qué estabas intentando hacer?\n"
        "- ¿Te aparece algún mensaje de error? Si es así, ¿cuál?"
    ),
    english=(
        "I need a bit more information to help you:\n\n"
        "- Which system or application is involved?\n"
        "- What were you trying to do?\n"
        "- Do you see an error message? If so, which one?"
    ),
)
