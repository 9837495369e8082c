import random
from io import BytesIO

from PIL import Image

from groupwarden.verification.challenge import CHALLENGE_ALPHABET, ImageChallengeGenerator


def test_random_code_uses_unambiguous_alphabet():
    generator = ImageChallengeGenerator(rng=random.Random(7))

    code = generator.random_code(200)

    assert len(code) == 200
    assert set(code) <= set(CHALLENGE_ALPHABET)
    assert not set("01IO") & set(CHALLENGE_ALPHABET)


def test_generate_renders_png_of_requested_size():
    generator = ImageChallengeGenerator(rng=random.Random(1))

    challenge = generator.generate(width=200, height=80, length=5)

    assert len(challenge.code) == 5
    with Image.open(BytesIO(challenge.image)) as image:
        assert image.format == "PNG"
        assert image.size == (200, 80)


def test_seeded_generators_are_reproducible():
    first = ImageChallengeGenerator(rng=random.Random(42)).generate(length=6)
    second = ImageChallengeGenerator(rng=random.Random(42)).generate(length=6)

    assert first.code == second.code
    assert first.image == second.image


def test_default_generator_varies():
    generator = ImageChallengeGenerator()
    codes = {generator.random_code(8) for _ in range(20)}
    assert len(codes) > 1
