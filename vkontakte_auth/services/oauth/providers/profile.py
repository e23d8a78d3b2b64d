"""VK ``users.get`` response parsing.

Expected payload::

    {"response": [{"id": 1, "first_name": "...", "last_name": "...",
                   "screen_name": "...", "sex": 2, "photo_200": "https://..."}]}

or, on failure, ``{"error": {"error_msg": "...", "error_code": 5}}``.
"""
from __future__ import annotations

import json
from collections.abc import Iterable
from typing import Any
from urllib.parse import urlencode

from pydantic import ValidationError

from vkontakte_auth.models.schemas import (
    Gender,
    NormalizedProfile,
    ProfileName,
    ProfileValue,
    ResolvedConfig,
)

from ..exceptions import ProfileParseError, VKontakteAPIError

REQUIRED_FIELDS = ("uid", "first_name", "last_name", "screen_name", "sex")

# VK "sex" codes
_GENDER_BY_SEX_CODE = {
    1: Gender.FEMALE,
    2: Gender.MALE,
}


def profile_fields(photo_size: int, extra_fields: Iterable[str] = ()) -> list[str]:
    """Required fields first, then caller fields not already requested, in caller order."""
    fields = [*REQUIRED_FIELDS, f"photo_{photo_size}"]
    for field in extra_fields:
        if field not in fields:
            fields.append(field)
    return fields


def profile_request_url(config: ResolvedConfig) -> str:
    params = {
        "fields": ",".join(profile_fields(config.photo_size, config.profile_fields)),
        "v": config.api_version,
        "https": 1,
    }
    if config.lang:
        params["lang"] = config.lang
    separator = "&" if "?" in config.profile_url else "?"
    return f"{config.profile_url}{separator}{urlencode(params, safe=',')}"


def raise_for_api_error(payload: dict[str, Any]) -> None:
    """Raise ``VKontakteAPIError`` if the API payload carries an ``error`` object."""
    error = payload.get("error")
    if not error:
        return
    if isinstance(error, dict):
        raise VKontakteAPIError(error.get("error_msg") or "Unknown VK API error", error.get("error_code"))
    raise VKontakteAPIError(str(error))


def gender_from_sex_code(code: Any) -> Gender:
    try:
        return _GENDER_BY_SEX_CODE.get(int(code), Gender.UNKNOWN)
    except (TypeError, ValueError):
        return Gender.UNKNOWN


def parse_profile(body: str, photo_size: int) -> NormalizedProfile:
    """
    Normalize a ``users.get`` response body.

    Raises:
        VKontakteAPIError: The payload carries an error object
        ProfileParseError: The body is not JSON or lacks a user record
    """
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise ProfileParseError("Failed to parse user profile") from e

    if not isinstance(payload, dict):
        raise ProfileParseError("Unexpected user profile payload")
    raise_for_api_error(payload)

    records = payload.get("response")
    if not isinstance(records, list) or not records or not isinstance(records[0], dict):
        raise ProfileParseError("User profile response contains no user record")
    record = records[0]

    user_id = record.get("id", record.get("uid"))
    if user_id is None:
        raise ProfileParseError("User profile record has no id")

    given_name = record.get("first_name") or ""
    family_name = record.get("last_name") or ""

    photo = record.get(f"photo_{photo_size}")
    try:
        return NormalizedProfile(
            id=user_id,
            username=record.get("screen_name"),
            display_name=f"{given_name} {family_name}".strip(),
            name=ProfileName(family_name=family_name, given_name=given_name),
            gender=gender_from_sex_code(record.get("sex")),
            photos=[ProfileValue(value=photo)] if photo else [],
            city=record.get("city"),
            raw=body,
            json_payload=record,
        )
    except ValidationError as e:
        raise ProfileParseError("Malformed user profile record") from e
