"""
Proxy Match: Profile Directory & interest-tag extraction

Profiles are supplied by the client layer.  The directory keeps the latest
snapshot per user and derives ``tags`` from the bio by matching it against a
configurable keyword vocabulary.  Tags are re-extracted only when the bio
changes.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

import structlog

from proxymatch.config import get_settings
from proxymatch.errors import InvalidInput, NotFound
from proxymatch.models.profile import Profile
from proxymatch.utils.keyed_lock import KeyedLock

logger = structlog.get_logger("proxymatch.profile_service")


class TagExtractor:
    """Find vocabulary keywords in free text.

    Matching is case-insensitive and bounded by non-word characters, so
    ``"art"`` matches "Art student." but not "party".  Multi-word entries
    such as ``"night owl"`` are matched as phrases.
    """

    def __init__(self, vocabulary: Iterable[str]) -> None:
        terms = sorted({term.strip().lower() for term in vocabulary if term and term.strip()})
        self.vocabulary: tuple[str, ...] = tuple(terms)
        self._patterns = [
            (term, re.compile(rf"(?<![\w-]){re.escape(term)}(?![\w-])", re.IGNORECASE))
            for term in terms
        ]

    def extract(self, text: str) -> frozenset[str]:
        if not text:
            return frozenset()
        return frozenset(term for term, pattern in self._patterns if pattern.search(text))


class ProfileService:
    """In-memory profile directory keyed by user id."""

    MAX_AGE: int = 120
    MIN_AGE: int = 18

    def __init__(self, extractor: Optional[TagExtractor] = None) -> None:
        if extractor is None:
            extractor = TagExtractor(get_settings().interest_vocabulary)
        self.extractor = extractor
        self._profiles: dict[str, Profile] = {}
        self._locks = KeyedLock()

        logger.info("profile_service_initialised", vocabulary_size=len(extractor.vocabulary))

    def upsert_profile(self, user_id: str, name: str, age: int, bio: str = "") -> Profile:
        """Create or update a profile; tags are refreshed when ``bio`` changes."""
        if not user_id:
            raise InvalidInput("user_id is required")
        if not name or not name.strip():
            raise InvalidInput("name is required")
        if not self.MIN_AGE <= age <= self.MAX_AGE:
            raise InvalidInput(f"age must be between {self.MIN_AGE} and {self.MAX_AGE}")

        bio = bio or ""
        with self._locks.hold(user_id):
            previous = self._profiles.get(user_id)
            if previous is not None and previous.bio == bio:
                tags = previous.tags
            else:
                tags = self.extractor.extract(bio)
            profile = Profile(user_id=user_id, name=name.strip(), age=age, bio=bio, tags=tags)
            self._profiles[user_id] = profile

        logger.info(
            "profile_upserted",
            user_id=user_id,
            created=previous is None,
            tag_count=len(tags),
        )
        return profile

    def get(self, user_id: str) -> Profile:
        profile = self._profiles.get(user_id)
        if profile is None:
            raise NotFound(f"No profile for user {user_id}.")
        return profile

    def find(self, user_id: str) -> Optional[Profile]:
        return self._profiles.get(user_id)

    def exists(self, user_id: str) -> bool:
        return user_id in self._profiles

    def tags_for(self, user_id: str) -> frozenset[str]:
        profile = self._profiles.get(user_id)
        return profile.tags if profile is not None else frozenset()
