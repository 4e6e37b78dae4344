"""
Shared pytest fixtures for the multisig-core test suite.
"""

import pytest

from multisig_core.environment import ExecutionEnvironment
from multisig_core.multisig import MultiSignatureAccount
from multisig_core.token import FungibleToken
from multisig_core.wallet import Wallet

VALIDATOR_ADDRESSES = [
    "0xc73280617F4daa107F8b2e0F4E75FA5b5239Cf24",
    "0x2b0e9EB31C3F3BC06437A7dF090a2f6a4D658150",
    "0x265d11e5bD1646C61F6dA0AdF3b404372268BDd3",
    "0x6283375C9f25903d31BC1C8a5f9a2C4d83a69F2C",
]

VALIDATOR_KEYS = [
    "27fe82e9f20da97c4edfb3595b89e8acab93362e054aec78c3a6acec04e820dc",
    "5cd9472be623a9179f146cb76c477016ec7157a44b75eca291ac50c68f4dce06",
    "d30aafd5f7bf07df49f18e05410320882e5cad7c5e55e48500a582b7e7605bb3",
    "1016d0f886dc50b613c75207f188e9cc46aad1381f45bb92a45b0c889ad617e8",
]

NEW_VALIDATOR_ADDRESS = "0x7A4e3f4409873732BCE67bb76153b0c8eE0A5846"
NEW_VALIDATOR_KEY = "0x0c79981a4b5e364589e1d7dd6f5dc8d2cd1c9920de80266045873a0cf3a168a1"

ACCOUNT_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
TOKEN_ADDRESS = "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"
DEPLOYER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
RECIPIENT_ADDRESS = "0x70997970c51812dC3a010C7d01b50E79C4b1D7f8"

INITIAL_SUPPLY = 1_000_000
ACCOUNT_FUNDING = 10_000


def sign_all(wallets, digest):
    """Approve *digest* with every wallet, in order."""
    return [w.sign_digest(digest) for w in wallets]


@pytest.fixture
def validator_wallets():
    """The four initial validators."""
    return [Wallet.from_private_key(k) for k in VALIDATOR_KEYS]


@pytest.fixture
def new_validator_wallet():
    """A fifth key that is not yet a validator."""
    return Wallet.from_private_key(NEW_VALIDATOR_KEY)


@pytest.fixture
def outsider_wallet():
    """A key that is never registered."""
    return Wallet.from_private_key("0x" + "11" * 32)


@pytest.fixture
def environment():
    return ExecutionEnvironment()


@pytest.fixture
def token(environment):
    """Mock token with the whole supply minted to the deployer."""
    return environment.register(
        FungibleToken(TOKEN_ADDRESS, DEPLOYER_ADDRESS, INITIAL_SUPPLY)
    )


@pytest.fixture
def account(environment, token):
    """Account deployed with the four validators at 80%, holding 10 000 tokens."""
    acc = MultiSignatureAccount(environment, ACCOUNT_ADDRESS, VALIDATOR_ADDRESSES, TOKEN_ADDRESS)
    assert token.transfer(DEPLOYER_ADDRESS, acc.address, ACCOUNT_FUNDING)
    return acc


@pytest.fixture
def validator_addresses():
    return list(VALIDATOR_ADDRESSES)


@pytest.fixture
def recipient():
    return RECIPIENT_ADDRESS


@pytest.fixture
def sign():
    """Helper: ``sign(wallets, digest) -> [signature, ...]``."""
    return sign_all
