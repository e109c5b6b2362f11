import base58
import pytest

from ledger_tx import Keypair, PublicKey
from ledger_tx.keys import to_hash


def test_public_key_text_form():
    raw = bytes(range(1, 33))
    key = PublicKey(raw)

    assert str(key) == base58.b58encode(raw).decode()
    assert PublicKey(str(key)) == key
    assert bytes(key) == raw


def test_public_key_equality_and_hash():
    assert PublicKey(bytes(32)) == PublicKey(bytearray(32))
    assert len({PublicKey(bytes(32)), PublicKey(bytes(32))}) == 1
    assert PublicKey(bytes(32)) != bytes(32)


def test_system_program_address():
    assert str(PublicKey(bytes(32))) == '11111111111111111111111111111111'


@pytest.mark.parametrize('value', [bytes(31), bytes(33), ''])
def test_public_key_length_checked(value):
    with pytest.raises(ValueError):
        PublicKey(value)


def test_to_hash():
    raw = bytes(range(32))
    assert to_hash(raw) == raw
    assert to_hash(base58.b58encode(raw).decode()) == raw
    with pytest.raises(ValueError):
        to_hash(bytes(16))


def test_keypair_sign_and_verify():
    keypair = Keypair.from_seed(bytes([3]) * 32)
    signature = keypair.sign(b'message')

    assert len(signature) == 64
    assert keypair.public_key.verify(b'message', signature)
    assert not keypair.public_key.verify(b'other', signature)
    assert not keypair.public_key.verify(b'message', signature[:10])


def test_keypair_secret_key_round_trip():
    keypair = Keypair.generate()

    restored = Keypair.from_secret_key(keypair.secret_key)

    assert restored.public_key == keypair.public_key
    with pytest.raises(ValueError):
        Keypair.from_secret_key(keypair.secret_key[:32] + bytes(32))
