import pytest

from backend.auth.challenge import ImageCategoryChallenge, NoChallenge, get_challenge_provider
from backend.core.errors import ValidationError

IMAGES = [
    {'id': 1, 'src': '🐶'},
    {'id': 2, 'src': '🚗'},
    {'id': 3, 'src': '🐱'},
    {'id': 4, 'src': '🍕'},
]


def test_get_challenge_provider_selects_variant_by_name() -> None:
    assert isinstance(get_challenge_provider('none'), NoChallenge)
    assert isinstance(get_challenge_provider(' IMAGE '), ImageCategoryChallenge)

    with pytest.raises(ValueError):
        get_challenge_provider('recaptcha')


def test_no_challenge_accepts_anything() -> None:
    NoChallenge().validate(None)


def test_image_challenge_accepts_exact_selection_in_any_order() -> None:
    ImageCategoryChallenge().validate(
        {'images': IMAGES, 'selectedIds': [3, 1], 'instruction': 'Select all Animals'}
    )


@pytest.mark.parametrize(
    ('challenge', 'message'),
    [
        (None, 'Puzzle verification required'),
        ({'images': IMAGES, 'selectedIds': [1], 'instruction': 'Select all animals'}, 'Invalid puzzle solution'),
        ({'images': IMAGES, 'selectedIds': [1, 2, 3], 'instruction': 'Select all animals'}, 'Invalid puzzle solution'),
        ({'images': IMAGES, 'selectedIds': [1, 3], 'instruction': 'Select all planets'}, 'Invalid puzzle solution'),
        ({'images': [{'src': '🐶'}], 'selectedIds': [1], 'instruction': 'animals'}, 'Invalid puzzle solution'),
    ],
)
def test_image_challenge_rejects_wrong_or_missing_solution(challenge, message: str) -> None:
    with pytest.raises(ValidationError) as exception_info:
        ImageCategoryChallenge().validate(challenge)

    assert exception_info.value.message == message
    assert exception_info.value.status_code == 400
