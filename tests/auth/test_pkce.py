"""Tests for the PKCE verifier."""

import secrets

import pytest

from wpreader.auth.pkce import (
    compute_challenge,
    generate_pkce_pair,
    validate_challenge_params,
    verify_pkce,
)
from wpreader.core.exceptions import ClientInputError


class TestComputeChallenge:
    def test_rfc7636_appendix_b_vector(self):
        """The S256 example from RFC 7636 Appendix B."""
        verifier = "dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk"
        assert compute_challenge(verifier) == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_challenge_is_unpadded_base64url(self):
        challenge = compute_challenge("some verifier")
        assert "=" not in challenge
        assert "+" not in challenge
        assert "/" not in challenge
        assert len(challenge) == 43


class TestVerifyPkce:
    def test_roundtrip_holds_for_random_verifiers(self):
        for _ in range(50):
            verifier = secrets.token_urlsafe(32)
            assert verify_pkce(verifier, compute_challenge(verifier))

    def test_other_verifier_never_matches(self):
        for _ in range(50):
            v1, v2 = secrets.token_urlsafe(32), secrets.token_urlsafe(32)
            assert not verify_pkce(v1, compute_challenge(v2))

    def test_generated_pair_matches(self):
        verifier, challenge = generate_pkce_pair()
        assert verify_pkce(verifier, challenge)

    def test_non_ascii_stored_challenge_is_a_mismatch(self):
        assert not verify_pkce("verifier", "caf\u00e9-challenge")

    @pytest.mark.parametrize("verifier", [None, ""])
    def test_missing_verifier_fails(self, verifier):
        assert not verify_pkce(verifier, compute_challenge("x"))


class TestValidateChallengeParams:
    def test_s256_with_challenge_is_accepted(self):
        validate_challenge_params(compute_challenge("verifier"), "S256")

    @pytest.mark.parametrize(
        "challenge",
        [
            "abc",
            "caf\u00e9-challenge",
            "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM=",
            "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw+cM",
            "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM\n",
        ],
    )
    def test_malformed_challenge_is_rejected(self, challenge):
        with pytest.raises(ClientInputError, match="S256 challenge"):
            validate_challenge_params(challenge, "S256")

    @pytest.mark.parametrize("method", ["plain", "s256", "", None])
    def test_other_methods_are_rejected(self, method):
        with pytest.raises(ClientInputError, match="S256"):
            validate_challenge_params("abc", method)

    @pytest.mark.parametrize("challenge", ["", None])
    def test_missing_challenge_is_rejected(self, challenge):
        with pytest.raises(ClientInputError, match="code_challenge"):
            validate_challenge_params(challenge, "S256")

    def test_rejection_maps_to_http_400(self):
        with pytest.raises(ClientInputError) as exc_info:
            validate_challenge_params(None, "S256")
        assert exc_info.value.status_code == 400
        assert exc_info.value.to_dict()["error"] == "invalid_request"
