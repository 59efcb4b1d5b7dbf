"""
Tests for canonical JSON coding and the wire models.
"""

from datetime import datetime, timezone
from typing import List

import pytest

from shredmate_shared.json_coding import JSONCoding, to_snake_case, to_wire
from shredmate_shared.models import (
    AuthResponse, AuthTokens, Place, RiderSport, RiderType, SkillLevel, User
)


@pytest.fixture
def coding():
    return JSONCoding()


class TestCaseConversion:

    @pytest.mark.parametrize("name,expected", [
        ("avatarUrl", "avatar_url"),
        ("createdByUserID", "created_by_user_id"),
        ("access_token", "access_token"),
        ("id", "id"),
    ])
    def test_to_snake_case(self, name, expected):
        assert to_snake_case(name) == expected


class TestEncoding:

    def test_models_drop_none_fields(self):
        user = User(id="u1", email="a@b.c")
        assert to_wire(user) == {"id": "u1", "email": "a@b.c"}

    def test_dataclass_encoding(self):
        tokens = AuthTokens(access_token="a", refresh_token="r")
        assert to_wire(tokens) == {"access_token": "a", "refresh_token": "r"}

    def test_naive_and_offset_datetimes(self):
        assert to_wire(datetime(2024, 5, 1, 12, 30)) == "2024-05-01T12:30:00"
        assert to_wire(datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)) == "2024-05-01T12:30:00Z"

    def test_unsupported_value(self):
        with pytest.raises(TypeError):
            to_wire({1, 2})

    def test_encode_returns_utf8_bytes(self, coding):
        assert coding.encode({"name": "Łeba"}) == '{"name": "Łeba"}'.encode("utf-8")


class TestDecoding:

    def test_auth_response(self, coding):
        body = b'{"access_token": "a", "refresh_token": "r", "user": {"id": "u1", "email": "a@b.c", "role": "ADMIN"}}'
        response = coding.decode(AuthResponse, body)

        assert response.access_token == "a"
        assert response.user.role.value == "ADMIN"

    def test_user_accepts_user_id(self, coding):
        user = coding.decode(User, b'{"user_id": "u9", "email": "a@b.c"}')
        assert user.id == "u9"
        assert to_wire(user) == {"id": "u9", "email": "a@b.c"}

    def test_camel_case_keys_are_normalized(self, coding):
        body = (
            b'[{"id": "p1", "name": "Hel", "avatarUrl": "https://img/p1.png", '
            b'"createdAt": "2024-01-01T00:00:00Z", "updatedAt": "2024-01-02T00:00:00Z", '
            b'"location": {"lat": 54.6, "lng": 18.8}}]'
        )
        places = coding.decode(List[Place], body)

        assert places[0].avatar_url == "https://img/p1.png"
        assert places[0].created_at == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert places[0].location.lat == 54.6

    def test_nested_enum_values(self, coding):
        body = b'{"id": "rs1", "sport_id": "s1", "level": "EXPERT", "is_mentor": true}'
        rider_sport = coding.decode(RiderSport, body)

        assert rider_sport.level == SkillLevel.EXPERT
        assert rider_sport.is_mentor is True

    def test_invalid_json_raises_value_error(self, coding):
        with pytest.raises(ValueError):
            coding.decode(User, b"{not json")

    def test_shape_mismatch_raises_value_error(self, coding):
        with pytest.raises(ValueError):
            coding.decode(User, b'{"email": "a@b.c"}')


class TestModels:

    def test_tokens_without_expiry_never_expire(self):
        assert not AuthTokens("a", "r").is_expired

    def test_tokens_expiry(self):
        assert AuthTokens("a", "r", datetime(2000, 1, 1, tzinfo=timezone.utc)).is_expired
        assert not AuthTokens("a", "r", datetime(2999, 1, 1, tzinfo=timezone.utc)).is_expired

    def test_tokens_dict_round_trip(self):
        tokens = AuthTokens("a", "r", datetime(2030, 1, 1, tzinfo=timezone.utc))
        assert AuthTokens.from_dict(tokens.to_dict()) == tokens

    def test_rider_type_display_name(self):
        assert RiderType.BOTH.display_name == "Rider & Mentor"
