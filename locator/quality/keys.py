"""Deterministic identity keys for suggestions."""
from __future__ import annotations

from typing import Tuple

from locator.normalize.text import normalise
from locator.storage.models import Suggestion


def suggestion_key(suggestion: Suggestion) -> Tuple[str, str]:
    """Case- and whitespace-insensitive `(name, kind)` identity; source is not part of it."""
    return normalise(suggestion.name), suggestion.kind.value
