"""Tests for users.get profile fetching and normalization."""
import json
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from vkontakte_auth.models.schemas import Gender, ProfileValue
from vkontakte_auth.services.oauth import InternalOAuthError, ProfileParseError, VKontakteAPIError
from vkontakte_auth.services.oauth.providers import parse_profile, profile_fields

from conftest import VK_USER


def _body(*records, **extra) -> str:
    return json.dumps({"response": list(records), **extra})


class TestParseProfile:
    def test_normalizes_user_record(self):
        body = _body({"uid": 1, "first_name": "A", "last_name": "B", "sex": 2, "photo_200": "http://x"})
        profile = parse_profile(body, 200)

        assert profile.provider == "vkontakte"
        assert profile.id == 1
        assert profile.display_name == "A B"
        assert profile.name.given_name == "A"
        assert profile.name.family_name == "B"
        assert profile.gender is Gender.MALE
        assert profile.photos == [ProfileValue(value="http://x")]
        assert profile.emails is None
        assert profile.city is None

    def test_keeps_raw_body_and_record(self):
        body = _body(VK_USER)
        profile = parse_profile(body, 200)
        assert profile.raw == body
        assert profile.json_payload == VK_USER
        assert profile.username == "durov"

    def test_prefers_id_over_uid(self):
        profile = parse_profile(_body({"id": 7, "uid": 8, "first_name": "A", "last_name": "B"}), 200)
        assert profile.id == 7

    @pytest.mark.parametrize(
        "sex, gender",
        [(1, Gender.FEMALE), (2, Gender.MALE), (0, Gender.UNKNOWN), (None, Gender.UNKNOWN), ("x", Gender.UNKNOWN)],
    )
    def test_gender_mapping(self, sex, gender):
        profile = parse_profile(_body({"id": 1, "first_name": "A", "last_name": "B", "sex": sex}), 200)
        assert profile.gender is gender

    def test_photo_uses_configured_size(self):
        record = {"id": 1, "first_name": "A", "last_name": "B", "photo_200": "http://200", "photo_100": "http://100"}
        assert parse_profile(_body(record), 100).photos == [ProfileValue(value="http://100")]

    def test_missing_photo_gives_empty_list(self):
        assert parse_profile(_body({"id": 1, "first_name": "A", "last_name": "B"}), 200).photos == []

    def test_city_passed_through_when_present(self):
        city = {"id": 2, "title": "Saint Petersburg"}
        profile = parse_profile(_body({"id": 1, "first_name": "A", "last_name": "B", "city": city}), 200)
        assert profile.city == city

    def test_display_name_without_last_name(self):
        assert parse_profile(_body({"id": 1, "first_name": "A"}), 200).display_name == "A"

    def test_api_error(self):
        body = json.dumps({"error": {"error_msg": "Invalid token", "error_code": 5}})
        with pytest.raises(VKontakteAPIError) as exc_info:
            parse_profile(body, 200)
        assert exc_info.value.message == "Invalid token"
        assert exc_info.value.code == 5

    @pytest.mark.parametrize(
        "body",
        [
            "not json",
            "[]",
            json.dumps({"response": []}),
            json.dumps({"response": {"id": 1}}),
            json.dumps({"response": [{"first_name": "A"}]}),
            json.dumps({"response": [{"id": {"nested": True}}]}),
        ],
    )
    def test_malformed_payloads(self, body):
        with pytest.raises(ProfileParseError):
            parse_profile(body, 200)

    def test_profile_is_immutable(self):
        profile = parse_profile(_body(VK_USER), 200)
        with pytest.raises(ValueError):
            profile.display_name = "Someone else"


class TestProfileFields:
    def test_required_fields(self):
        assert profile_fields(200) == ["uid", "first_name", "last_name", "screen_name", "sex", "photo_200"]

    def test_extra_fields_appended_in_order_without_duplicates(self):
        fields = profile_fields(100, ["city", "sex", "bdate", "city", "photo_100", "domain"])
        assert fields == [
            "uid", "first_name", "last_name", "screen_name", "sex", "photo_100",
            "city", "bdate", "domain",
        ]


class TestUserProfile:
    def test_profile_url(self, make_strategy):
        strategy = make_strategy(profile_fields=["city", "uid"], lang="ru")
        url = urlsplit(strategy.profile_url)
        query = parse_qs(url.query)

        assert f"{url.scheme}://{url.netloc}{url.path}" == "https://api.vk.com/method/users.get"
        assert query["fields"] == ["uid,first_name,last_name,screen_name,sex,photo_200,city"]
        assert query["v"] == ["5.110"]
        assert query["https"] == ["1"]
        assert query["lang"] == ["ru"]

    @pytest.mark.asyncio
    async def test_fetches_with_access_token(self, vk, make_strategy):
        profile = await make_strategy().user_profile("token-1")

        assert profile.id == 1
        assert profile.display_name == "Pavel Durov"
        (request,) = vk.requests
        assert request.method == "GET"
        assert request.url.params["access_token"] == "token-1"
        assert request.url.params["v"] == "5.110"

    @pytest.mark.asyncio
    async def test_api_error(self, vk, make_strategy):
        vk.profile = (200, {"error": {"error_msg": "Invalid token", "error_code": 5}})
        with pytest.raises(VKontakteAPIError) as exc_info:
            await make_strategy().user_profile("token-1")
        assert exc_info.value.code == 5

    @pytest.mark.asyncio
    async def test_transport_failure_is_wrapped(self, vk, make_strategy):
        cause = httpx.ConnectError("connection refused")
        vk.fail_with = cause
        with pytest.raises(InternalOAuthError) as exc_info:
            await make_strategy().user_profile("token-1")
        assert exc_info.value.message == "failed to fetch user profile"
        assert exc_info.value.oauth_error is cause

    @pytest.mark.asyncio
    async def test_http_error_status_is_wrapped(self, vk, make_strategy):
        vk.profile = (502, "Bad Gateway")
        with pytest.raises(InternalOAuthError) as exc_info:
            await make_strategy().user_profile("token-1")
        assert isinstance(exc_info.value.oauth_error, httpx.HTTPStatusError)

    @pytest.mark.asyncio
    async def test_malformed_body(self, vk, make_strategy):
        vk.profile = (200, "<html>")
        with pytest.raises(ProfileParseError):
            await make_strategy().user_profile("token-1")
