"""Localized verification messages (English and Dutch)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict

from groupwarden.util.logger import get_logger

logger = get_logger("localization")

DUTCH_KEYWORDS = ("nederland", "dutch", "nl", "holland", "vlaams", "belgie", "belgian")


@dataclass(frozen=True, slots=True)
class VerificationMessages:
    welcome_template: Callable[[int], str]
    success: str
    wrong: str
    timeout: str
    already_verified: str

    def welcome(self, timeout_minutes: int) -> str:
        return self.welcome_template(timeout_minutes)


MESSAGES: Dict[str, VerificationMessages] = {
    "en": VerificationMessages(
        welcome_template=lambda timeout: (
            "Welcome! To verify you're human, please type the code shown in the image "
            f"within {timeout} minutes.\n\n"
            "The code is case-insensitive (you can type lowercase or uppercase)."
        ),
        success="Verification successful! Welcome to the group.",
        wrong="That code is not correct. Please look at the image and try again.",
        timeout="Verification time expired. You will be removed from the group.",
        already_verified="You are already verified!",
    ),
    "nl": VerificationMessages(
        welcome_template=lambda timeout: (
            "Welkom! Om te bevestigen dat je een mens bent, typ de code die in de afbeelding "
            f"wordt getoond binnen {timeout} minuten.\n\n"
            "De code is niet hoofdlettergevoelig."
        ),
        success="Verificatie geslaagd! Welkom in de groep.",
        wrong="Die code is niet correct. Kijk naar de afbeelding en probeer opnieuw.",
        timeout="Verificatietijd verlopen. Je wordt uit de groep verwijderd.",
        already_verified="Je bent al geverifieerd!",
    ),
}


def detect_language(room_name: str | None) -> str:
    """``"nl"`` when the room name contains a Dutch keyword, else ``"en"``."""
    lower_name = (room_name or "").lower()
    for keyword in DUTCH_KEYWORDS:
        if keyword in lower_name:
            return "nl"
    return "en"


def get_messages(room_name: str | None) -> VerificationMessages:
    language = detect_language(room_name)
    logger.debug("[VERIFY] Using '%s' messages for room %s", language, room_name)
    return MESSAGES[language]
