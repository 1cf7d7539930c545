"""Localized user-facing error messages.

Purpose:
- Map error codes raised by the service layer to Estonian messages that the
  client renders verbatim (title, description, suggested action, severity).
- Classify arbitrary exception text into a known code when a remote call fails
  without one.

Usage:
- ``get_error_message("AUTH_REQUIRED")`` returns the catalog entry.
- ``classify_error(exc, context="workout_save")`` picks a code by pattern, then
  by context, and falls back to ``UNKNOWN_ERROR``.
"""

from __future__ import annotations

import re
from typing import Literal, Optional

from pydantic import BaseModel

Severity = Literal["low", "medium", "high", "critical"]


class ErrorMessage(BaseModel):
    """A single localized message."""

    title: str
    description: str
    action: Optional[str] = None
    severity: Severity = "medium"


def _msg(title: str, description: str, action: Optional[str], severity: Severity) -> ErrorMessage:
    return ErrorMessage(title=title, description=description, action=action, severity=severity)


ERROR_MESSAGES: dict[str, ErrorMessage] = {
    # Database/Connection errors
    "NETWORK_ERROR": _msg(
        "Ühenduse viga",
        "Internetiühendus on katkenud. Palun kontrolli oma ühendust ja proovi uuesti.",
        "Kontrolli ühendust",
        "high",
    ),
    "TIMEOUT_ERROR": _msg(
        "Aegumise viga",
        "Päring võttis liiga kaua aega. Palun proovi uuesti.",
        "Proovi uuesti",
        "medium",
    ),
    "DATABASE_ERROR": _msg(
        "Andmebaasi viga",
        "Andmebaasiga ühenduse loomisel tekkis viga. Palun proovi uuesti või võta ühendust toega.",
        "Võta ühendust toega",
        "critical",
    ),
    # Authentication errors
    "AUTH_REQUIRED": _msg(
        "Sisselogimine nõutav",
        "Selle toimingu tegemiseks pead olema sisse logitud.",
        "Logi sisse",
        "medium",
    ),
    "AUTH_EXPIRED": _msg(
        "Sessioon aegunud",
        "Sinu sessioon on aegunud. Palun logi uuesti sisse.",
        "Logi uuesti sisse",
        "medium",
    ),
    "PERMISSION_DENIED": _msg(
        "Ligipääs keelatud",
        "Sul pole õigusi selle toimingu tegemiseks. Palun võta ühendust administraatoriga.",
        "Võta ühendust administraatoriga",
        "high",
    ),
    # Subscription errors
    "SUBSCRIPTION_REQUIRED": _msg(
        "Ligipääs puudub",
        "See sisu on saadaval aktiivse paketi või prooviperioodiga.",
        "Vaata pakette",
        "medium",
    ),
    "TRIAL_ALREADY_USED": _msg(
        "Prooviperiood on juba kasutatud",
        "Tasuta prooviperioodi saab alustada ainult üks kord.",
        "Vaata pakette",
        "low",
    ),
    "PAYMENT_FAILED": _msg(
        "Makse ebaõnnestus",
        "Makse kinnitamine ebaõnnestus. Palun proovi uuesti või võta ühendust toega.",
        "Võta ühendust toega",
        "high",
    ),
    # Program/Template errors
    "PROGRAM_NOT_FOUND": _msg(
        "Programm ei leitud",
        "Otsitud programm ei ole enam saadaval või on kustutatud.",
        "Värskenda lehte",
        "medium",
    ),
    "NOT_FOUND": _msg(
        "Ei leitud",
        "Otsitud kirjet ei leitud või see on kustutatud.",
        "Värskenda lehte",
        "medium",
    ),
    "PROGRAM_ASSIGNMENT_FAILED": _msg(
        "Programmi määramine ebaõnnestus",
        "Programmi määramine kasutajale ebaõnnestus. Palun proovi uuesti.",
        "Proovi uuesti",
        "high",
    ),
    # Workout errors
    "WORKOUT_START_FAILED": _msg(
        "Treeningu alustamine ebaõnnestus",
        "Treeningu alustamine ebaõnnestus. Palun proovi uuesti.",
        "Proovi uuesti",
        "medium",
    ),
    "WORKOUT_SAVE_FAILED": _msg(
        "Treeningu salvestamine ebaõnnestus",
        "Treeningu andmete salvestamine ebaõnnestus. Palun proovi uuesti.",
        "Proovi uuesti",
        "high",
    ),
    "WORKOUT_COMPLETE_FAILED": _msg(
        "Treeningu lõpetamine ebaõnnestus",
        "Treeningu lõpetamine ebaõnnestus. Palun proovi uuesti.",
        "Proovi uuesti",
        "high",
    ),
    "EXERCISE_SAVE_FAILED": _msg(
        "Harjutuse salvestamine ebaõnnestus",
        "Harjutuse andmete salvestamine ebaõnnestus. Palun proovi uuesti.",
        "Proovi uuesti",
        "medium",
    ),
    # Progression errors
    "PROGRESSION_ANALYSIS_FAILED": _msg(
        "Progressiooni analüüs ebaõnnestus",
        "Automaatne progressiooni analüüs ebaõnnestus. Sinu programm jätkub praeguste seadistustega.",
        "Jätka treeningut",
        "low",
    ),
    "PROGRESSION_UPDATE_FAILED": _msg(
        "Progressiooni uuendamine ebaõnnestus",
        "Programmi progressiooni uuendamine ebaõnnestus. Palun proovi uuesti.",
        "Proovi uuesti",
        "medium",
    ),
    # Validation errors
    "VALIDATION_ERROR": _msg(
        "Andmete valideerimise viga",
        "Sisestatud andmed ei ole korrektsed. Palun kontrolli oma sisestust.",
        "Kontrolli andmeid",
        "medium",
    ),
    "REQUIRED_FIELD_MISSING": _msg(
        "Kohustuslik väli puudub",
        "Palun täida kõik kohustuslikud väljad.",
        "Täida kohustuslikud väljad",
        "medium",
    ),
    "INVALID_EMAIL": _msg(
        "Vigane e-posti aadress",
        "Sisestatud e-posti aadress ei ole korrektne.",
        "Kontrolli e-posti aadressi",
        "medium",
    ),
    "SLOT_UNAVAILABLE": _msg(
        "Aeg pole saadaval",
        "Valitud aeg on juba broneeritud või ei ole konsultatsiooniaeg.",
        "Vali teine aeg",
        "medium",
    ),
    "HABIT_LIMIT_REACHED": _msg(
        "Harjumuste piir täis",
        "Maksimaalselt 4 harjumust lubatud.",
        "Arhiveeri mõni harjumus enne uue lisamist",
        "low",
    ),
    # System errors
    "SYSTEM_ERROR": _msg(
        "Süsteemi viga",
        "Süsteemis tekkis ootamatu viga. Palun proovi uuesti või võta ühendust toega.",
        "Võta ühendust toega",
        "critical",
    ),
    "SERVICE_UNAVAILABLE": _msg(
        "Teenus pole saadaval",
        "Teenus on ajutiselt kättesaamatu. Palun proovi hiljem uuesti.",
        "Proovi hiljem uuesti",
        "high",
    ),
}

UNKNOWN_ERROR = _msg("Viga", "Tekkis ootamatu viga. Palun proovi uuesti.", "Proovi uuesti", "medium")

# Order matters: the first matching pattern wins.
ERROR_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"network|connection|internet", re.I), "NETWORK_ERROR"),
    (re.compile(r"timeout|timed out", re.I), "TIMEOUT_ERROR"),
    (re.compile(r"database|db|sql", re.I), "DATABASE_ERROR"),
    (re.compile(r"auth|login|session", re.I), "AUTH_REQUIRED"),
    (re.compile(r"permission|access|forbidden", re.I), "PERMISSION_DENIED"),
    (re.compile(r"not found|missing|deleted", re.I), "PROGRAM_NOT_FOUND"),
    (re.compile(r"validation|invalid|required", re.I), "VALIDATION_ERROR"),
    (re.compile(r"system|server|internal", re.I), "SYSTEM_ERROR"),
]

CONTEXT_ERRORS: dict[str, str] = {
    "workout_start": "WORKOUT_START_FAILED",
    "workout_save": "WORKOUT_SAVE_FAILED",
    "workout_complete": "WORKOUT_COMPLETE_FAILED",
    "exercise_save": "EXERCISE_SAVE_FAILED",
    "program_assignment": "PROGRAM_ASSIGNMENT_FAILED",
    "progression_analysis": "PROGRESSION_ANALYSIS_FAILED",
    "progression_update": "PROGRESSION_UPDATE_FAILED",
}


def get_error_message(code: str) -> ErrorMessage:
    """Return the catalog entry for ``code`` or the generic message."""
    return ERROR_MESSAGES.get(code, UNKNOWN_ERROR)


def classify_error(error: object, context: Optional[str] = None) -> str:
    """Pick an error code for an arbitrary error.

    An explicit ``code`` attribute known to the catalog wins, then the first
    pattern matching the error text, then the context fallback.

    Returns:
        A code from ``ERROR_MESSAGES`` or ``"UNKNOWN_ERROR"``.
    """
    code = getattr(error, "code", None)
    if isinstance(code, str) and code in ERROR_MESSAGES:
        return code

    text = str(error) if error is not None else ""
    for pattern, pattern_code in ERROR_PATTERNS:
        if pattern.search(text):
            return pattern_code

    if context and context in CONTEXT_ERRORS:
        return CONTEXT_ERRORS[context]

    return "UNKNOWN_ERROR"
