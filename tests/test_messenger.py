# pylint: disable=missing-module-docstring,redefined-outer-name
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import pytest

from rsamessenger.directory import Message
from rsamessenger.errors import InvalidKeySize
from rsamessenger.errors import MissingKeyError
from rsamessenger.messenger import Messenger
from rsamessenger.rsa import PrivateKey
from rsamessenger.rsa import PublicKey
from rsamessenger.storage import KeyStore

M61 = 2**61 - 1
M127 = 2**127 - 1
e = 65537
d = pow(e, -1, (M61 - 1) * (M127 - 1))


class MemoryDirectory:
    """Stands in for the remote directory, holding the documents in dicts."""

    def __init__(self):
        self.keys: dict[str, dict] = {}
        self.messages: dict[str, dict] = {}

    def get_key(self, email):
        return PublicKey.from_json(self.keys[email]) if email in self.keys else None

    def put_key(self, email, key):
        self.keys[email] = key.to_json()

    def get_message(self, email):
        return Message.from_json(self.messages[email]) if email in self.messages else None

    def put_message(self, email, message):
        self.messages[email] = message.to_json()


def fixed_keys(size):
    if size != 192:
        raise InvalidKeySize("Only 192 bits in tests.")
    return PublicKey(e, M61 * M127), PrivateKey(d, M61 * M127)


@pytest.fixture
def directory() -> MemoryDirectory:
    return MemoryDirectory()


@pytest.fixture
def store(tmp_path) -> KeyStore:
    return KeyStore(tmp_path)


@pytest.fixture
def messenger(store, directory) -> Messenger:
    return Messenger(store, directory, fixed_keys)


def test_key_gen(messenger, store):
    messenger.key_gen(192)
    assert store.get_public() == PublicKey(e, M61 * M127)
    assert store.get_public().email == ""
    assert store.get_private() == PrivateKey(d, M61 * M127)
    assert store.get_private().emails == set()


def test_key_gen_invalid(messenger, store):
    with pytest.raises(InvalidKeySize):
        messenger.key_gen(31)
    assert store.get_public() is None


def test_key_gen_real(store, directory):
    Messenger(store, directory).key_gen(64)
    pub, priv = store.get_public(), store.get_private()
    assert pub.mod == priv.mod
    assert priv.c_rsa(pub.c_rsa(42 % pub.mod)) == 42 % pub.mod


def test_send_key(messenger, store, directory):
    messenger.key_gen(192)
    messenger.send_key("me@example.com")
    assert directory.keys["me@example.com"] == {"key": store.get_public().key, "email": "me@example.com"}
    assert store.get_public().email == "me@example.com"
    assert store.get_private().emails == {"me@example.com"}
    messenger.send_key("alias@example.com")
    messenger.send_key("me@example.com")
    assert store.get_private().emails == {"me@example.com", "alias@example.com"}


def test_send_key_without_keys(messenger, directory):
    with pytest.raises(MissingKeyError):
        messenger.send_key("me@example.com")
    assert not directory.keys


def test_get_key(messenger, store, directory):
    directory.put_key("bob@example.com", PublicKey(17, 3233, "bob@example.com"))
    messenger.get_key("bob@example.com")
    fetched = store.get_public("bob@example.com")
    assert fetched == PublicKey(17, 3233)
    assert fetched.email == "bob@example.com"


def test_get_key_binds_missing_email(messenger, store, directory):
    directory.keys["bob@example.com"] = PublicKey(17, 3233).to_json()
    messenger.get_key("bob@example.com")
    assert store.get_public("bob@example.com").email == "bob@example.com"


def test_get_key_absent(messenger, store):
    with pytest.raises(MissingKeyError):
        messenger.get_key("nobody@example.com")
    assert store.get_public("nobody@example.com") is None


def test_send_msg_without_key(messenger, directory):
    with pytest.raises(MissingKeyError, match="Key does not exist for bob@example.com"):
        messenger.send_msg("bob@example.com", "hi")
    assert not directory.messages


def test_send_msg_too_long(messenger, directory):
    messenger.key_gen(192)
    messenger.send_key("me@example.com")
    messenger.get_key("me@example.com")
    with pytest.raises(ValueError, match="too long"):
        messenger.send_msg("me@example.com", "x" * 64)
    assert not directory.messages


def test_message_roundtrip(messenger, directory):
    messenger.key_gen(192)
    messenger.send_key("me@example.com")
    messenger.get_key("me@example.com")
    messenger.send_msg("me@example.com", "Hello there!")
    stored = directory.messages["me@example.com"]
    assert stored["email"] == "me@example.com"
    assert stored["content"] != "Hello there!"
    assert messenger.get_msg("me@example.com") == "Hello there!"


def test_send_msg_deterministic(messenger, directory):
    messenger.key_gen(192)
    messenger.send_key("me@example.com")
    messenger.get_key("me@example.com")
    messenger.send_msg("me@example.com", "again")
    first = directory.messages["me@example.com"]["content"]
    messenger.send_msg("me@example.com", "again")
    assert directory.messages["me@example.com"]["content"] == first


def test_get_msg_without_private_key(messenger):
    with pytest.raises(MissingKeyError, match="can't be decoded"):
        messenger.get_msg("me@example.com")


def test_get_msg_unpublished_email(messenger, directory):
    messenger.key_gen(192)
    messenger.send_key("me@example.com")
    directory.put_message("other@example.com", Message.create("other@example.com", "AQ=="))
    with pytest.raises(MissingKeyError, match="can't be decoded"):
        messenger.get_msg("other@example.com")


def test_get_msg_absent(messenger):
    messenger.key_gen(192)
    messenger.send_key("me@example.com")
    with pytest.raises(MissingKeyError, match="No message"):
        messenger.get_msg("me@example.com")


def test_two_users(tmp_path):
    directory = MemoryDirectory()
    alice = Messenger(KeyStore(tmp_path / "alice"), directory)
    bob = Messenger(KeyStore(tmp_path / "bob"), directory)
    alice.key_gen(256)
    bob.key_gen(256)
    alice.send_key("alice@example.com")
    bob.send_key("bob@example.com")
    alice.get_key("bob@example.com")
    alice.send_msg("bob@example.com", "hi")
    assert bob.get_msg("bob@example.com") == "hi"
    with pytest.raises(MissingKeyError):
        alice.get_msg("bob@example.com")


@pytest.mark.parametrize("email", ["private", "public", "../private"])
def test_get_key_keeps_local_keys(messenger, store, directory, email):
    messenger.key_gen(192)
    messenger.send_key("me@example.com")
    directory.put_key(email, PublicKey(17, 3233, email))
    with pytest.raises(ValueError):
        messenger.get_key(email)
    assert store.get_private() == PrivateKey(d, M61 * M127)
    assert store.get_private().emails == {"me@example.com"}
    assert store.get_public() == PublicKey(e, M61 * M127)


def test_send_msg_unencodable(messenger, directory):
    messenger.key_gen(192)
    messenger.send_key("me@example.com")
    messenger.get_key("me@example.com")
    with pytest.raises(UnicodeEncodeError) as excinfo:
        messenger.send_msg("me@example.com", "\ud800")
    assert "too long" not in str(excinfo.value)
    assert not directory.messages
