"""The five user-facing operations of the messenger.

`Messenger` ties the key generator, the local `KeyStore` and the `RemoteDirectory` together. Both collaborators are
injected, so the operations can run against any store or directory with the same methods.

Typical usage example:

    m = Messenger(KeyStore(), RemoteDirectory("http://localhost:5000"))
    m.key_gen(1024)
    m.send_key("me@example.com")
    m.get_key("you@example.com")
    m.send_msg("you@example.com", "Hi there!")
    print(m.get_msg("me@example.com"))
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import logging
from typing import Callable

from rsamessenger import rsa
from rsamessenger.directory import Message
from rsamessenger.directory import RemoteDirectory
from rsamessenger.errors import MissingKeyError
from rsamessenger.storage import KeyStore

logger = logging.getLogger(__name__)


class Messenger:
    """Key and message workflows over a key store and a remote directory.

    Attributes:
        keystore: Local key persistence.
        directory: The remote key/message directory.
        key_generator: Callable returning a fresh (public, private) key pair for a bit size.
    """

    def __init__(self,
                 keystore: KeyStore,
                 directory: RemoteDirectory,
                 key_generator: Callable[[int], tuple[rsa.PublicKey, rsa.PrivateKey]] = rsa.generate_keys) -> None:
        self.keystore = keystore
        self.directory = directory
        self.key_generator = key_generator

    def key_gen(self, size: int) -> None:
        """Generate a key pair of `size` bits and store both halves locally, replacing any previous pair.

        Raises:
            InvalidKeySize: If `size` is out of range or not a multiple of 8.
        """
        pub, priv = self.key_generator(size)
        self.keystore.put_public(pub)
        self.keystore.put_private(priv)
        logger.info("Stored new %d-bit key pair", size)

    def send_key(self, email: str) -> None:
        """Publish the local public key under `email` and allow the private key to read its messages.

        Raises:
            MissingKeyError: If no key pair has been generated.
            DirectoryError: If the directory rejects the key.
        """
        pub = self.keystore.get_public()
        priv = self.keystore.get_private()
        if pub is None or priv is None:
            raise MissingKeyError("No key pair found. Please generate one with keyGen first.")
        pub.email = email
        self.directory.put_key(email, pub)
        self.keystore.put_public(pub)
        priv.add_email(email)
        self.keystore.put_private(priv)
        logger.info("Published public key for %s", email)

    def get_key(self, email: str) -> None:
        """Fetch the public key of `email` and store it locally as `<email>.key`.

        Raises:
            MissingKeyError: If the directory holds no key for `email`.
            ValueError: If `email` cannot name a key file, such as `private` or a path.
            DirectoryError: If the directory cannot be reached.
        """
        pub = self.directory.get_key(email)
        if pub is None:
            raise MissingKeyError(f"The directory has no key for {email}.")
        if not pub.email:
            pub.email = email
        self.keystore.put_public(pub, email)

    def send_msg(self, email: str, plaintext: str) -> None:
        """Encrypt `plaintext` with the stored key of `email` and leave it in the directory.

        Raises:
            MissingKeyError: If the key of `email` has not been fetched.
            ValueError: If the message is too long for the recipient's key.
            UnicodeEncodeError: If `plaintext` cannot be encoded as UTF-8.
            DirectoryError: If the directory rejects the message.
        """
        pub = self.keystore.get_public(email)
        if pub is None:
            raise MissingKeyError(f"Key does not exist for {email}. Fetch it with getKey first.")
        message = rsa.bytes_to_integer(plaintext.encode("utf-8"))
        if message >= pub.mod:
            raise ValueError(f"Message is too long for the {pub.mod.bit_length()}-bit key of {email}.")
        content = rsa.b64_enc(pub.c_rsa(message))
        self.directory.put_message(email, Message.create(email, content))
        logger.info("Sent message to %s", email)

    def get_msg(self, email: str) -> str:
        """Fetch and decrypt the message waiting for `email`.

        Returns:
            The decrypted plaintext.

        Raises:
            MissingKeyError: If the local private key was not published for `email`, or no message is waiting.
            DirectoryError: If the directory cannot be reached.
        """
        priv = self.keystore.get_private()
        if priv is None or email not in priv.emails:
            raise MissingKeyError(f"Message can't be decoded: no private key for {email}.")
        message = self.directory.get_message(email)
        if message is None:
            raise MissingKeyError(f"No message waiting for {email}.")
        return priv.decrypt_text(message.content)
