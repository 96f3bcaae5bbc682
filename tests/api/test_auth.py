"""Tests for bearer-token identity resolution."""

from datetime import timedelta

import pytest
from jose import jwt
from starlette.requests import Request

from artsite.api.auth import JWTIdentityResolver
from artsite.exceptions import UnauthorizedError

SECRET = "unit-secret"


def _request(authorization=None) -> Request:
    headers = []
    if authorization is not None:
        headers.append((b"authorization", authorization.encode()))
    return Request({"type": "http", "method": "GET", "path": "/", "headers": headers})


def test_resolves_account_from_sub_claim():
    resolver = JWTIdentityResolver(SECRET)
    token = resolver.create_token("acct-42")

    account = resolver.authenticate(_request(f"Bearer {token}"))

    assert account.account_id == "acct-42"


def test_falls_back_to_user_id_claim():
    resolver = JWTIdentityResolver(SECRET)
    token = jwt.encode({"user_id": "legacy-1"}, SECRET, algorithm="HS256")

    assert resolver.authenticate(_request(f"Bearer {token}")).account_id == "legacy-1"


@pytest.mark.parametrize("header", [None, "", "Basic abc", "Bearer "])
def test_missing_or_wrong_scheme(header):
    with pytest.raises(UnauthorizedError):
        JWTIdentityResolver(SECRET).authenticate(_request(header))


def test_expired_token_rejected():
    resolver = JWTIdentityResolver(SECRET)
    token = resolver.create_token("acct-42", expires_delta=timedelta(seconds=-5))

    with pytest.raises(UnauthorizedError):
        resolver.authenticate(_request(f"Bearer {token}"))


def test_token_without_identity_rejected():
    token = jwt.encode({"role": "artist"}, SECRET, algorithm="HS256")
    with pytest.raises(UnauthorizedError):
        JWTIdentityResolver(SECRET).authenticate(_request(f"Bearer {token}"))
