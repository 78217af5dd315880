"""Tests for ImageKit upload signatures."""

import hashlib
import hmac
import time

from packages.shared.imagekit_auth import (
    DEFAULT_EXPIRE_SECONDS,
    get_upload_auth_params,
    sign_upload,
    verify_upload_signature,
)


def test_sign_upload_is_hmac_sha1_of_token_and_expire():
    expected = hmac.new(b"private_key", b"tok1700000000", hashlib.sha1).hexdigest()
    assert sign_upload("private_key", "tok", 1700000000) == expected


def test_auth_params_shape_and_default_expiry():
    before = int(time.time())
    params = get_upload_auth_params("private_key", "public_key")
    assert set(params) == {"token", "expire", "signature", "publicKey"}
    assert params["publicKey"] == "public_key"
    assert before + DEFAULT_EXPIRE_SECONDS <= params["expire"] <= int(time.time()) + DEFAULT_EXPIRE_SECONDS
    assert params["signature"] == sign_upload("private_key", params["token"], params["expire"])


def test_tokens_are_unique():
    a = get_upload_auth_params("k", "p")
    b = get_upload_auth_params("k", "p")
    assert a["token"] != b["token"]


def test_verify_upload_signature():
    expire = int(time.time()) + 60
    signature = sign_upload("k", "tok", expire)
    assert verify_upload_signature("k", "tok", expire, signature)
    assert not verify_upload_signature("other", "tok", expire, signature)
    assert not verify_upload_signature("k", "tok", int(time.time()) - 1, sign_upload("k", "tok", int(time.time()) - 1))
    assert not verify_upload_signature("", "tok", expire, signature)
