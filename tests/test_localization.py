import pytest

from groupwarden.verification.localization import MESSAGES, detect_language, get_messages


@pytest.mark.parametrize(
    "room_name, language",
    [
        ("Nederland Chat", "nl"),
        ("Dutch Expats", "nl"),
        ("HOLLAND fans", "nl"),
        ("Vlaams Forum", "nl"),
        ("Belgian Beer", "nl"),
        ("Online gaming", "nl"),
        ("Test Group", "en"),
        ("", "en"),
        (None, "en"),
    ],
)
def test_detect_language(room_name, language):
    assert detect_language(room_name) == language


def test_get_messages_picks_language():
    assert get_messages("Nederland Chat") is MESSAGES["nl"]
    assert get_messages("Test Group") is MESSAGES["en"]


def test_welcome_includes_timeout():
    assert "within 5 minutes" in MESSAGES["en"].welcome(5)
    assert "binnen 10 minuten" in MESSAGES["nl"].welcome(10)


def test_every_language_has_all_messages():
    for messages in MESSAGES.values():
        assert messages.success
        assert messages.wrong
        assert messages.timeout
        assert messages.already_verified
