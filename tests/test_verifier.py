"""
Test suite for multisig_core.verifier — signer recovery and quorum counting.

Covers:
  - Recovery in supplied order, hex and bytes inputs
  - Non-validators ignored, duplicate signers counted once
  - Order independence of the outcome
  - BadSignature with the offending index
  - InsufficientQuorum context
"""

import itertools

import pytest

from multisig_core.crypto_utils import keccak256
from multisig_core.errors import BadSignature, InsufficientQuorum
from multisig_core.registry import ValidatorRegistry
from multisig_core.verifier import evaluate, recover_signers, signature_bytes, verify_quorum


@pytest.fixture
def digest():
    return keccak256(b"some action")


@pytest.fixture
def registry(validator_addresses):
    return ValidatorRegistry(validator_addresses)


class TestRecoverSigners:

    def test_recovers_in_order(self, digest, validator_wallets, sign):
        sigs = sign(validator_wallets, digest)
        assert recover_signers(digest, sigs) == [w.address for w in validator_wallets]

    def test_hex_signatures(self, digest, validator_wallets):
        sig = validator_wallets[0].sign_digest(digest)
        assert recover_signers(digest, ["0x" + sig.hex()]) == [validator_wallets[0].address]
        assert recover_signers(digest, [sig.hex()]) == [validator_wallets[0].address]

    def test_bad_signature_index(self, digest, validator_wallets, sign):
        sigs = sign(validator_wallets[:2], digest) + [b"\x01" * 10]
        with pytest.raises(BadSignature) as exc_info:
            recover_signers(digest, sigs)
        assert exc_info.value.context["index"] == 2

    def test_bad_hex(self, digest):
        with pytest.raises(BadSignature):
            recover_signers(digest, ["0xnothex"])

    def test_signature_bytes_type(self):
        with pytest.raises(BadSignature):
            signature_bytes(12345)


class TestQuorum:

    def test_all_validators(self, digest, registry, validator_wallets, sign):
        approved = verify_quorum(digest, sign(validator_wallets, digest), registry, 4)
        assert approved == frozenset(w.address for w in validator_wallets)

    def test_non_validator_ignored(self, digest, registry, validator_wallets, outsider_wallet, sign):
        sigs = sign(validator_wallets[:3] + [outsider_wallet], digest)
        result = evaluate(digest, sigs, registry, 4)
        assert result.found == 3
        assert not result.met
        assert result.ignored == frozenset({outsider_wallet.address})

    def test_duplicate_counts_once(self, digest, registry, validator_wallets):
        sig = validator_wallets[0].sign_digest(digest)
        result = evaluate(digest, [sig, sig, sig, sig], registry, 2)
        assert result.found == 1
        with pytest.raises(InsufficientQuorum):
            verify_quorum(digest, [sig, sig, sig, sig], registry, 2)

    def test_duplicate_in_hex_and_bytes(self, digest, registry, validator_wallets):
        sig = validator_wallets[1].sign_digest(digest)
        result = evaluate(digest, [sig, "0x" + sig.hex()], registry, 1)
        assert result.approved == frozenset({validator_wallets[1].address})

    def test_order_independent(self, digest, registry, validator_wallets, outsider_wallet, sign):
        sigs = sign(validator_wallets[:3] + [outsider_wallet], digest)
        outcomes = {
            evaluate(digest, list(perm), registry, 3).approved
            for perm in itertools.permutations(sigs)
        }
        assert len(outcomes) == 1

    def test_wrong_digest_approves_nobody(self, digest, registry, validator_wallets, sign):
        sigs = sign(validator_wallets, keccak256(b"another action"))
        result = evaluate(digest, sigs, registry, 1)
        assert result.found == 0
        assert len(result.ignored) == 4

    def test_insufficient_context(self, digest, registry, validator_wallets, sign):
        with pytest.raises(InsufficientQuorum) as exc_info:
            verify_quorum(digest, sign(validator_wallets[:2], digest), registry, 4)
        assert exc_info.value.found == 2
        assert exc_info.value.required == 4

    def test_empty_signature_list(self, digest, registry):
        with pytest.raises(InsufficientQuorum):
            verify_quorum(digest, [], registry, 1)

    def test_result_to_dict(self, digest, registry, validator_wallets, sign):
        result = evaluate(digest, sign(validator_wallets[:1], digest), registry, 1)
        d = result.to_dict()
        assert d["met"] is True
        assert d["approved"] == [validator_wallets[0].address]
