"""
Proxy Match: Profile snapshot used for interest matching.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Profile:
    user_id: str
    name: str
    age: int
    bio: str = ""
    tags: frozenset[str] = field(default_factory=frozenset)

    def __repr__(self) -> str:
        return f"<Profile {self.user_id} tags={sorted(self.tags)}>"
