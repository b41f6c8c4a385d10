"""
Tests for profile edits and anonymous names.
"""
import random
import re
import pytest

from evergreeners.constants import ANONYMOUS_ADJECTIVES, ANONYMOUS_NOUNS
from evergreeners.exceptions import UserNotFoundException, ValidationException
from evergreeners.schemas import ProfileUpdate
from evergreeners.services.profile_service import ProfileService, generate_anonymous_name
from evergreeners.tests.conftest import make_user


ANONYMOUS_NAME = re.compile(
    f"^({'|'.join(ANONYMOUS_ADJECTIVES)})({'|'.join(ANONYMOUS_NOUNS)})([0-9]{{1,3}})$"
)


class TestGenerateAnonymousName:
    """Tests for generate_anonymous_name"""

    def test_shape(self):
        rng = random.Random(7)
        for _ in range(50):
            match = ANONYMOUS_NAME.match(generate_anonymous_name(rng))
            assert match is not None
            assert 0 <= int(match.group(3)) <= 999

    def test_seeded_rng_repeats(self):
        assert generate_anonymous_name(random.Random(3)) == generate_anonymous_name(random.Random(3))


class TestUpdateProfile:
    """Tests for ProfileService.update_profile"""

    def test_fields_applied(self, db_session):
        make_user(db_session, "u1", username="octo")

        user = ProfileService(db_session).update_profile(
            "u1", ProfileUpdate(name="Octo Cat", bio="Commits daily", location="Lisbon", website="https://octo.dev")
        )

        assert user.name == "Octo Cat"
        assert user.bio == "Commits daily"
        assert user.location == "Lisbon"
        assert user.website == "https://octo.dev"
        assert user.username == "octo"
        assert user.is_public is True
        assert user.anonymous_name is None

    def test_unset_fields_left_alone(self, db_session):
        make_user(db_session, "u1", username="octo")
        service = ProfileService(db_session)
        service.update_profile("u1", ProfileUpdate(bio="first"))

        user = service.update_profile("u1", ProfileUpdate(location="Porto"))

        assert user.bio == "first"
        assert user.location == "Porto"

    def test_going_private_assigns_name(self, db_session):
        make_user(db_session, "u1")

        user = ProfileService(db_session).update_profile(
            "u1", ProfileUpdate(is_public=False), rng=random.Random(1)
        )

        assert user.is_public is False
        assert ANONYMOUS_NAME.match(user.anonymous_name)

    def test_name_kept_across_toggles(self, db_session):
        """Going public and private again keeps the first anonymous name"""
        make_user(db_session, "u1")
        service = ProfileService(db_session)
        first = service.update_profile("u1", ProfileUpdate(is_public=False)).anonymous_name

        service.update_profile("u1", ProfileUpdate(is_public=True))
        user = service.update_profile("u1", ProfileUpdate(is_public=False))

        assert user.anonymous_name == first

    def test_explicit_name_wins(self, db_session):
        make_user(db_session, "u1")

        user = ProfileService(db_session).update_profile(
            "u1", ProfileUpdate(is_public=False, anonymous_name="QuietOak")
        )

        assert user.anonymous_name == "QuietOak"

    def test_username_taken(self, db_session):
        make_user(db_session, "u1", username="octo")
        make_user(db_session, "u2", username="cat")

        with pytest.raises(ValidationException):
            ProfileService(db_session).update_profile("u2", ProfileUpdate(username="octo"))

        assert ProfileService(db_session).get_profile("u2").username == "cat"

    def test_unknown_user(self, db_session):
        with pytest.raises(UserNotFoundException):
            ProfileService(db_session).update_profile("ghost", ProfileUpdate(bio="hi"))
