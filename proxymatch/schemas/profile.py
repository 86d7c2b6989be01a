from pydantic import BaseModel, Field


class ProfileUpsert(BaseModel):
    name: str
    age: int
    bio: str = ""


class ProfileResponse(BaseModel):
    user_id: str
    name: str
    age: int
    bio: str
    tags: list[str] = Field(default_factory=list)

    model_config = {"from_attributes": True}

    @classmethod
    def from_profile(cls, profile) -> "ProfileResponse":
        return cls(
            user_id=profile.user_id,
            name=profile.name,
            age=profile.age,
            bio=profile.bio,
            tags=sorted(profile.tags),
        )
