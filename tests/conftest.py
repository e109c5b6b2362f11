import pytest

from ledger_tx import Keypair


@pytest.fixture
def blockhash() -> bytes:
    return bytes(range(32))


@pytest.fixture
def payer() -> Keypair:
    return Keypair.from_seed(bytes([7]) * 32)


@pytest.fixture
def cosigner() -> Keypair:
    return Keypair.from_seed(bytes([8]) * 32)
