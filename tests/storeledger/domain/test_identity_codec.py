"""Tests for the identity codec — round trips and hostile input."""

import base64
import os

import pytest
from storeledger.access.codec import IdentityCodec
from storeledger.errors import DecodeError


@pytest.fixture()
def codec():
    return IdentityCodec("codec-test-secret")


class TestRoundTrip:
    @pytest.mark.parametrize(
        "raw_id",
        ["8c4f1f5e-0d5a-4c1b-9d0e-6a6f3f9e2b11", "x", "store/with spaces", "ünïcødé-id"],
    )
    def test_decode_recovers_identifier(self, codec, raw_id):
        assert codec.decode(codec.encode(raw_id)) == raw_id

    def test_tokens_for_same_id_differ(self, codec):
        assert codec.encode("store-1") != codec.encode("store-1")

    def test_decoding_is_repeatable(self, codec):
        token = codec.encode("store-1")
        assert codec.decode(token) == codec.decode(token) == "store-1"

    def test_tokens_are_url_safe(self, codec):
        token = codec.encode("store-1")
        assert "+" not in token and "/" not in token and "=" not in token

    def test_any_secret_length_works(self):
        for secret in ["k", "a" * 200]:
            codec = IdentityCodec(secret)
            assert codec.decode(codec.encode("tenant-9")) == "tenant-9"

    def test_empty_secret_refused(self):
        with pytest.raises(ValueError):
            IdentityCodec("")


class TestHostileInput:
    def test_wrong_key(self, codec):
        token = IdentityCodec("another-secret").encode("store-1")
        with pytest.raises(DecodeError):
            codec.decode(token)

    def test_every_flipped_byte_is_detected(self, codec):
        token = codec.encode("store-1")
        raw = base64.urlsafe_b64decode(token + "=" * (-len(token) % 4))
        for index in range(len(raw)):
            tampered = bytearray(raw)
            tampered[index] ^= 0x01
            token = base64.urlsafe_b64encode(bytes(tampered)).rstrip(b"=").decode()
            with pytest.raises(DecodeError):
                codec.decode(token)

    def test_truncated_token(self, codec):
        token = codec.encode("store-1")
        with pytest.raises(DecodeError):
            codec.decode(token[:10])

    @pytest.mark.parametrize(
        "token",
        [None, "", 42, b"bytes", "not base64 !!!", "ÿÿÿÿ", "A", "====", "\x00\x01"],
    )
    def test_garbage_raises_decode_error_only(self, codec, token):
        with pytest.raises(DecodeError):
            codec.decode(token)

    def test_random_bytes_never_escape_as_other_errors(self, codec):
        for length in range(0, 80, 3):
            token = base64.urlsafe_b64encode(os.urandom(length)).decode()
            with pytest.raises(DecodeError):
                codec.decode(token)
