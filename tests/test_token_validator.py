"""Tests for the shared TokenValidator."""

from __future__ import annotations

import base64
import json
from dataclasses import replace
from unittest.mock import MagicMock

import pytest
from cryptography.hazmat.primitives.asymmetric import ec

from wp_idp_auth import (
    ClaimTypes,
    KeyResolutionError,
    StaticSigningKeyResolver,
    TokenValidator,
    validate_token,
)

FAILED = "Token validation failed: "
ERROR = "Error validating token: "


@pytest.fixture
def validator(options, key_resolver, fixed_clock):
    return TokenValidator(options=options, key_resolver=key_resolver, clock=fixed_clock)


def _b64(data: dict) -> str:
    return base64.urlsafe_b64encode(json.dumps(data).encode()).rstrip(b"=").decode()


class TestEmptyAndUnreadable:
    @pytest.mark.parametrize("token", [None, "", "   ", "\t\n"])
    def test_empty_token(self, validator, token):
        result = validator.validate(token)
        assert result.is_valid is False
        assert result.error_message == "Token is null or empty"

    @pytest.mark.parametrize(
        "token",
        [
            "not-a-token",
            "only.two",
            "a.b.c.d",
            "a.b.c.d.e",
            "abc.def.ghi",
            "!!!.???.***",
        ],
    )
    def test_unreadable_token(self, validator, token):
        result = validator.validate(token)
        assert result.is_valid is False
        assert result.error_message == "Token cannot be read"

    def test_payload_must_be_json_object(self, validator):
        token = f"{_b64({'alg': 'RS256'})}.{base64.urlsafe_b64encode(b'[1,2]').decode().rstrip('=')}.c2ln"
        result = validator.validate(token)
        assert result.error_message == "Token cannot be read"


class TestSuccessfulValidation:
    def test_valid_token_populates_identity(self, validator, token_factory):
        result = validator.validate(token_factory())
        assert result.is_valid is True
        assert result.error_message is None
        assert result.subject == "user-1"
        assert result.tenant_id == "tenant-1"
        assert result.email == "user@example.com"
        assert result.additional_claims["iss"] == validator.options.authority
        assert result.additional_claims["aud"] == "client-123"

    def test_subject_precedence(self, validator, token_factory):
        token = token_factory({ClaimTypes.NAME_IDENTIFIER: "name-id", "oid": "object-id"})
        assert validator.validate(token).subject == "name-id"

        token = token_factory({"oid": "object-id"}, sub=None)
        assert validator.validate(token).subject == "object-id"

    def test_tenant_precedence(self, validator, token_factory):
        token = token_factory({"tenant_id": "fallback"})
        assert validator.validate(token).tenant_id == "tenant-1"

        token = token_factory({"tenant_id": "fallback"}, tid=None)
        assert validator.validate(token).tenant_id == "fallback"

    def test_email_precedence(self, validator, token_factory):
        token = token_factory({ClaimTypes.EMAIL: "uri@example.com"})
        assert validator.validate(token).email == "uri@example.com"

        token = token_factory({"preferred_username": "upn@example.com"}, email=None)
        assert validator.validate(token).email == "upn@example.com"

        token = token_factory(email=None)
        assert validator.validate(token).email is None

    def test_duplicate_claim_types_first_value_wins(self, validator, token_factory):
        token = token_factory({"roles": ["admin", "reader"]})
        result = validator.validate(token)
        assert result.additional_claims["roles"] == "admin"

    def test_audience_list_with_one_match(self, validator, token_factory):
        token = token_factory(aud=["other-api", "client-123"])
        assert validator.validate(token).is_valid is True

    def test_idempotent(self, validator, token_factory):
        token = token_factory()
        assert validator.validate(token) == validator.validate(token)

    def test_module_level_function(self, options, key_resolver, fixed_clock, token_factory):
        result = validate_token(token_factory(), options, key_resolver, clock=fixed_clock)
        assert result.is_valid is True

    def test_token_without_kid_uses_single_key(self, options, private_key, fixed_clock, token_factory):
        resolver = StaticSigningKeyResolver({None: private_key.public_key()})
        validator = TokenValidator(options=options, key_resolver=resolver, clock=fixed_clock)
        assert validator.validate(token_factory(kid=None)).is_valid is True

    def test_numeric_subject_and_jwt_id_are_accepted(self, validator, token_factory):
        result = validator.validate(token_factory(sub=12345, jti=7))
        assert result.is_valid is True
        assert result.subject == "12345"
        assert result.additional_claims["jti"] == "7"


class TestLifetime:
    def test_expiry_exactly_at_skew_boundary_is_valid(self, validator, token_factory, fixed_clock):
        now = int(fixed_clock())
        token = token_factory(iat=now - 3600, nbf=now - 3600, exp=now - 300)
        assert validator.validate(token).is_valid is True

    def test_not_before_exactly_at_skew_boundary_is_valid(self, validator, token_factory, fixed_clock):
        now = int(fixed_clock())
        token = token_factory(nbf=now + 300, exp=now + 3600)
        assert validator.validate(token).is_valid is True

    def test_expired_one_second_past_skew(self, validator, token_factory, fixed_clock):
        now = int(fixed_clock())
        token = token_factory(iat=now - 3600, nbf=now - 3600, exp=now - 301)
        result = validator.validate(token)
        assert result.is_valid is False
        assert result.error_message.startswith(FAILED)
        assert "expired" in result.error_message
        assert result.subject is None
        assert result.additional_claims == {}

    def test_not_yet_valid_one_second_past_skew(self, validator, token_factory, fixed_clock):
        now = int(fixed_clock())
        token = token_factory(nbf=now + 301, exp=now + 3600)
        result = validator.validate(token)
        assert result.is_valid is False
        assert result.error_message.startswith(FAILED)

    def test_missing_expiration(self, validator, token_factory):
        result = validator.validate(token_factory(exp=None))
        assert result.is_valid is False
        assert result.error_message.startswith(FAILED)

    def test_not_before_after_expiry(self, validator, token_factory, fixed_clock):
        now = int(fixed_clock())
        result = validator.validate(token_factory(nbf=now + 100, exp=now + 50))
        assert result.is_valid is False
        assert result.error_message.startswith(FAILED)


class TestIssuerAndAudience:
    def test_default_issuer_is_authority(self, validator, token_factory):
        result = validator.validate(token_factory(iss="https://evil.example.com"))
        assert result.is_valid is False
        assert result.error_message.startswith(FAILED)
        assert "Issuer" in result.error_message

    def test_default_audience_is_client_id(self, validator, token_factory):
        result = validator.validate(token_factory(aud="someone-else"))
        assert result.is_valid is False
        assert result.error_message.startswith(FAILED)
        assert "Audience" in result.error_message

    def test_missing_audience(self, validator, token_factory):
        result = validator.validate(token_factory(aud=None))
        assert result.error_message.startswith(FAILED)

    def test_missing_issuer(self, validator, token_factory):
        result = validator.validate(token_factory(iss=None))
        assert result.error_message.startswith(FAILED)

    def test_configured_lists_replace_defaults(self, options, key_resolver, fixed_clock, token_factory):
        configured = replace(
            options,
            valid_audiences=("api://orders",),
            valid_issuers=("https://sts.example.com/",),
        )
        validator = TokenValidator(options=configured, key_resolver=key_resolver, clock=fixed_clock)

        accepted = token_factory(iss="https://sts.example.com/", aud="api://orders")
        assert validator.validate(accepted).is_valid is True

        # client id / authority are no longer accepted once lists are configured
        assert validator.validate(token_factory(aud="client-123", iss="https://sts.example.com/")).is_valid is False
        assert validator.validate(token_factory(aud="api://orders")).is_valid is False

    @pytest.mark.parametrize("aud", [[{"x": 1}], {"client-123": 1}, 42, ["client-123", 7]])
    def test_non_string_audience_fails_validation(self, validator, token_factory, aud):
        result = validator.validate(token_factory(aud=aud))
        assert result.is_valid is False
        assert result.error_message.startswith(FAILED + "Audience validation failed")

    @pytest.mark.parametrize("iss", [{"url": "https://sts"}, ["https://sts"], 42])
    def test_non_string_issuer_fails_validation(self, validator, token_factory, iss):
        result = validator.validate(token_factory(iss=iss))
        assert result.is_valid is False
        assert result.error_message.startswith(FAILED + "Issuer validation failed")


class TestSignature:
    def test_wrong_key(self, validator, token_factory, other_private_key):
        result = validator.validate(token_factory(key=other_private_key))
        assert result.is_valid is False
        assert result.error_message.startswith(FAILED)

    def test_unknown_kid(self, validator, token_factory):
        result = validator.validate(token_factory(kid="rotated-away"))
        assert result.is_valid is False
        assert result.error_message.startswith(FAILED)
        assert "rotated-away" in result.error_message

    def test_unsigned_token_rejected(self, validator, fixed_clock):
        now = int(fixed_clock())
        payload = {"iss": validator.options.authority, "aud": "client-123", "sub": "x", "exp": now + 60}
        token = f"{_b64({'alg': 'none', 'typ': 'JWT'})}.{_b64(payload)}."
        result = validator.validate(token)
        assert result.is_valid is False
        assert result.error_message.startswith(FAILED)

    def test_symmetric_algorithm_not_allowed(self, validator, token_factory):
        token = token_factory(key="a-shared-secret-that-is-long-enough-for-hs256", algorithm="HS256")
        result = validator.validate(token)
        assert result.is_valid is False
        assert result.error_message.startswith(FAILED)

    def test_algorithm_not_matching_key_type_fails_validation(self, validator, token_factory):
        ec_key = ec.generate_private_key(ec.SECP256R1())
        token = token_factory(key=ec_key, algorithm="ES256")

        result = validator.validate(token)

        assert result.is_valid is False
        assert result.error_message.startswith(FAILED)

    def test_key_resolution_failure_is_unexpected_error(self, options, fixed_clock, token_factory):
        resolver = MagicMock()
        resolver.get_signing_key.side_effect = KeyResolutionError("JWKS endpoint unreachable")
        validator = TokenValidator(options=options, key_resolver=resolver, clock=fixed_clock)

        result = validator.validate(token_factory())
        assert result.is_valid is False
        assert result.error_message == ERROR + "JWKS endpoint unreachable"

    def test_resolver_crash_never_raises(self, options, fixed_clock, token_factory):
        resolver = MagicMock()
        resolver.get_signing_key.side_effect = RuntimeError("boom")
        validator = TokenValidator(options=options, key_resolver=resolver, clock=fixed_clock)

        result = validator.validate(token_factory())
        assert result.error_message == ERROR + "boom"


def test_validator_holds_no_per_call_state(validator, token_factory):
    first = validator.validate(token_factory(sub="a"))
    second = validator.validate(token_factory(sub="b"))
    assert (first.subject, second.subject) == ("a", "b")
