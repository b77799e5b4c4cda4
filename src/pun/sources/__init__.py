from .base import ChangelogSource
from .panthor import DEFAULT_CHANGELOG_URL, PanthorChangelogSource

__all__ = [
    "DEFAULT_CHANGELOG_URL",
    "ChangelogSource",
    "PanthorChangelogSource",
]
