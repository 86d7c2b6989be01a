"""Unit tests for ProfileService and TagExtractor."""
import pytest

from proxymatch.errors import InvalidInput, NotFound
from proxymatch.services.profile_service import ProfileService, TagExtractor


@pytest.fixture
def extractor(settings):
    return TagExtractor(settings.interest_vocabulary)


class TestTagExtractor:
    """Tests for keyword extraction from bios."""

    @pytest.mark.parametrize(
        "bio,expected",
        [
            ("Music lover. Coffee enthusiast. Always down for spontaneous adventures.",
             {"music", "coffee", "adventures"}),
            ("Photographer by day, DJ by night. Let's create memories!", {"photographer", "dj"}),
            ("Music producer. Vinyl collector. Night owl.",
             {"music", "music producer", "vinyl", "night owl"}),
            ("Art student who loves music and coffee.", {"art", "music", "coffee"}),
        ],
    )
    def test_sample_bios(self, extractor, bio, expected):
        assert extractor.extract(bio) == frozenset(expected)

    def test_case_insensitive(self, extractor):
        assert extractor.extract("YOGA and SUNSET") == frozenset({"yoga", "sunset"})

    def test_word_boundaries(self, extractor):
        # "art" inside "party", "dj" inside "adjust" and "tech" inside "technique"
        assert extractor.extract("Party planner who can adjust any technique") == frozenset()

    def test_hyphenated_terms(self, extractor):
        assert extractor.extract("Stand-up comedy on weekends") == frozenset({"stand-up", "comedy"})

    def test_empty_bio(self, extractor):
        assert extractor.extract("") == frozenset()

    def test_custom_vocabulary(self):
        extractor = TagExtractor(["Chess", " go ", "", "chess"])
        assert extractor.vocabulary == ("chess", "go")
        assert extractor.extract("I play chess and Go.") == frozenset({"chess", "go"})


class TestProfileService:
    """Tests for the profile directory."""

    def test_upsert_and_get(self, profile_service):
        profile = profile_service.upsert_profile("me", "Sam Taylor", 23, "Art student.")
        assert profile_service.get("me") == profile
        assert profile.tags == frozenset({"art"})
        assert profile_service.exists("me")

    def test_name_is_stripped(self, profile_service):
        assert profile_service.upsert_profile("me", "  Sam  ", 23).name == "Sam"

    def test_bio_change_refreshes_tags(self, profile_service):
        profile_service.upsert_profile("me", "Sam", 23, "Coffee first.")
        updated = profile_service.upsert_profile("me", "Sam", 24, "Yoga first.")
        assert updated.tags == frozenset({"yoga"})
        assert updated.age == 24

    def test_unchanged_bio_keeps_tags(self):
        service = ProfileService(TagExtractor(["coffee"]))
        first = service.upsert_profile("me", "Sam", 23, "Coffee first.")
        service.extractor = TagExtractor(["first"])
        second = service.upsert_profile("me", "Samuel", 23, "Coffee first.")
        assert second.tags == first.tags == frozenset({"coffee"})
        assert second.name == "Samuel"

    @pytest.mark.parametrize("age", [17, 121, -1])
    def test_invalid_age_rejected(self, profile_service, age):
        with pytest.raises(InvalidInput):
            profile_service.upsert_profile("me", "Sam", age)

    @pytest.mark.parametrize("user_id,name", [("", "Sam"), ("me", ""), ("me", "   ")])
    def test_missing_fields_rejected(self, profile_service, user_id, name):
        with pytest.raises(InvalidInput):
            profile_service.upsert_profile(user_id, name, 30)

    def test_unknown_profile(self, profile_service):
        with pytest.raises(NotFound):
            profile_service.get("nobody")
        assert profile_service.find("nobody") is None
        assert profile_service.tags_for("nobody") == frozenset()
