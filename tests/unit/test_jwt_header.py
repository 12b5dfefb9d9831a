from __future__ import annotations

import pytest
from jose import jwt

from fleet_access.auth.dependencies import _bearer_token
from fleet_access.auth.jwt import decode_token
from fleet_access.configs.settings import Settings
from fleet_access.errors import AuthError


def test_bearer_token_ok() -> None:
    assert _bearer_token("Bearer abc.def.ghi") == "abc.def.ghi"


def test_bearer_token_scheme_is_case_insensitive() -> None:
    assert _bearer_token("bearer abc") == "abc"


@pytest.mark.parametrize("value", [None, "", "Basic xxx", "Bearer", "Bearer "])
def test_bearer_token_invalid(value) -> None:
    with pytest.raises(AuthError):
        _bearer_token(value)


def test_decode_token_round_trips_claims() -> None:
    settings = Settings(jwt_secret="s3cret")
    token = jwt.encode(
        {"sub": "u-1", "email": "a@fleet.io", "role": "admin", "tenantId": "t-1"},
        "s3cret",
        algorithm="HS256",
    )
    claims = decode_token(token, settings)
    assert claims["sub"] == "u-1"
    assert claims["tenantId"] == "t-1"


def test_decode_token_rejects_wrong_secret() -> None:
    token = jwt.encode({"sub": "u-1"}, "other", algorithm="HS256")
    with pytest.raises(AuthError):
        decode_token(token, Settings(jwt_secret="s3cret"))
