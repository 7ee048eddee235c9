"""Human-check challenges evaluated before a password login is attempted."""

from typing import Any

from backend.core import config
from backend.core.errors import ValidationError

IMAGE_CATEGORIES = {
    "animals": {"🐶", "🐱", "🐻", "🦁", "🐸", "🐧"},
    "vehicles": {"🚗", "🚲", "✈️", "🚢", "🚁", "🚌"},
    "food": {"🍎", "🍕", "🍔", "🍰", "🍌", "🍒"},
    "nature": {"🌳", "🌸", "🌞", "🌙", "⭐", "🌈"},
}


class ChallengeProvider:
    name = "base"

    def validate(self, challenge: dict[str, Any] | None) -> None:
        raise NotImplementedError


class NoChallenge(ChallengeProvider):
    name = "none"

    def validate(self, challenge: dict[str, Any] | None) -> None:
        return None


class ImageCategoryChallenge(ChallengeProvider):
    """The client shows a grid of emoji and asks the user to pick every image in one category."""

    name = "image"

    def validate(self, challenge: dict[str, Any] | None) -> None:
        if not challenge:
            raise ValidationError("Puzzle verification required")
        if not self.is_solved(challenge):
            raise ValidationError("Invalid puzzle solution")

    @staticmethod
    def target_category(instruction: str) -> str | None:
        instruction = instruction.lower()
        for category in IMAGE_CATEGORIES:
            if category in instruction:
                return category
        return None

    def is_solved(self, challenge: dict[str, Any]) -> bool:
        images = challenge.get("images")
        selected_ids = challenge.get("selectedIds")
        instruction = challenge.get("instruction")
        if not images or selected_ids is None or not isinstance(instruction, str):
            return False

        category = self.target_category(instruction)
        if category is None:
            return False

        try:
            correct_ids = sorted(image["id"] for image in images if image.get("src") in IMAGE_CATEGORIES[category])
            return sorted(selected_ids) == correct_ids
        except (AttributeError, KeyError, TypeError):
            return False


_PROVIDERS = {provider.name: provider for provider in (NoChallenge, ImageCategoryChallenge)}


def get_challenge_provider(name: str | None = None) -> ChallengeProvider:
    provider_name = (name or config.LOGIN_CHALLENGE).strip().lower()
    try:
        return _PROVIDERS[provider_name]()
    except KeyError as exc:
        raise ValueError(f"Unknown login challenge '{provider_name}'") from exc
