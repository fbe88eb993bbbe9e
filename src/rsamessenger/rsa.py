"""Provides core RSA functionalities: key handling, key material encoding, encryption and decryption.

Facilitates core RSA, solely under "textbook" RSA conditions. No padding is applied, so encryption is deterministic
and a message is limited to integers below the modulus. Handles the general key handling as well as supporting
functions to marshal integers to bytes and base64 strings.

Key material travels as a single base64 blob holding two length-prefixed big-endian integers: the exponent (public
or private, depending on the key) followed by the modulus.

Typical usage example:

    pub, priv = generate_keys(1024)
    c = pub.encrypt_text("Hi there!")
    r = priv.decrypt_text(c)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import base64
import binascii
from typing import Any, Iterable

from rsamessenger import keygen
from rsamessenger.errors import KeyFileCorrupt
from rsamessenger.errors import KeyMaterialCorrupt

LENGTH_PREFIX: int = 4


def bytes_to_integer(msg: bytes) -> int:
    """Converts a byte string to a non-negative integer, big-endian.

    Args:
        msg: The bytes (AKA Octet String) to convert.

    Returns:
        The representative integer.
    """
    return int.from_bytes(msg, byteorder="big", signed=False)


def integer_to_bytes(msg: int, fixedlen: int | None = None) -> bytes:
    """Converts a non-negative integer to bytes, big-endian.

    Args:
        msg: The integer to unmarshal.
        fixedlen: The target length of the byte string.
            If not provided uses the minimal length, which is zero bytes for 0.

    Returns:
        The representative bytes. (AKA Octet String)
    """
    if fixedlen is None:
        fixedlen = (msg.bit_length() + 7) // 8
    return msg.to_bytes(fixedlen, byteorder="big", signed=False)


def b64_enc(msg: int) -> str:
    """Encodes an integer into a base64 string of its minimal big-endian bytes.

    Args:
        msg: The message to encode.

    Returns:
        A base64 encoded string.
    """
    return base64.b64encode(integer_to_bytes(msg)).decode("ascii")


def b64_dec(msg: str) -> int:
    """Decodes a base64 encoded string into an int.

    Args:
        msg: The base64 encoded string.

    Returns:
        The decoded int.

    Raises:
        binascii.Error: If `msg` is not valid base64.
    """
    return bytes_to_integer(base64.b64decode(msg.encode("ascii"), validate=True))


def encode_key(exponent: int, modulus: int) -> str:
    """Packs an exponent and modulus into a transportable key blob.

    Each integer is written as a 4-byte big-endian length followed by its big-endian bytes, exponent first. The
    buffer is then base64 encoded.

    Args:
        exponent: The public or private exponent.
        modulus: The shared modulus.

    Returns:
        The base64 key blob.

    Raises:
        ValueError: If either integer is negative or too large for the length prefix.
    """
    buffer = b""
    for value in (exponent, modulus):
        if value < 0:
            raise ValueError("Key material must be non-negative")
        raw = integer_to_bytes(value)
        if len(raw) >= 2**(8 * LENGTH_PREFIX):
            raise ValueError("Key material too long for the length prefix")
        buffer += integer_to_bytes(len(raw), LENGTH_PREFIX) + raw
    return base64.b64encode(buffer).decode("ascii")


def decode_key(blob: str) -> tuple[int, int]:
    """Unpacks a key blob created by `encode_key`.

    Args:
        blob: The base64 key blob.

    Returns:
        The (exponent, modulus) pair.

    Raises:
        KeyMaterialCorrupt: If the blob is not base64, is truncated, or has trailing bytes.
    """
    try:
        buffer = base64.b64decode(blob, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise KeyMaterialCorrupt("Key material is not valid base64.") from exc
    values = []
    offset = 0
    for _ in range(2):
        if len(buffer) - offset < LENGTH_PREFIX:
            raise KeyMaterialCorrupt("Key material ends inside a length prefix.")
        length = bytes_to_integer(buffer[offset:offset + LENGTH_PREFIX])
        offset += LENGTH_PREFIX
        if len(buffer) - offset < length:
            raise KeyMaterialCorrupt(f"Key material declares {length} bytes but only {len(buffer) - offset} remain.")
        values.append(bytes_to_integer(buffer[offset:offset + length]))
        offset += length
    if offset != len(buffer):
        raise KeyMaterialCorrupt(f"Key material has {len(buffer) - offset} trailing bytes.")
    return values[0], values[1]


def encrypt(message: bytes, e: int, n: int) -> bytes:
    """Textbook RSA encryption of the big-endian integer held in `message`.

    Raises:
        ValueError: If the message integer is not below `n`.
    """
    return integer_to_bytes(RSAKey(e, n).c_rsa(bytes_to_integer(message)))


def decrypt(ciphertext: bytes, d: int, n: int) -> bytes:
    """Textbook RSA decryption, returning the minimal big-endian bytes of the plaintext integer.

    Raises:
        ValueError: If the ciphertext integer is not below `n`.
    """
    return integer_to_bytes(RSAKey(d, n).c_rsa(bytes_to_integer(ciphertext)))


class RSAKey:
    """The overall RSA key class implementation.

    Acts mostly as a template for the "core" components of a RSA Key that are strictly mandatory in both a public
    and a private key.

    Attributes:
        expo: The exponent of the key, whether private or public.
        mod: The modulus of the keypair.
    """

    def __init__(self, expo: int, mod: int) -> None:
        if mod <= 0:
            raise ValueError("Modulus must be > 0")
        self.expo = expo
        self.mod = mod

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return (self.expo, self.mod) == (other.expo, other.mod)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.mod.bit_length()} bits>"

    def c_rsa(self, message: int) -> int:
        """Performs core RSA operation. (Encrypt/Decrypt)

        Baseline RSA Primitive, with no padding applied.

        Args:
            message: The int-marshalled message to transform.

        Returns:
            The transformed message.

        Raises:
            ValueError: If the message is out of range for the current key.
        """
        if not 0 <= message < self.mod:
            raise ValueError("Message representative must be in range [0, mod-1]")
        return pow(message, self.expo, self.mod)

    @property
    def key(self) -> str:
        """The base64 key blob of this key."""
        return encode_key(self.expo, self.mod)

    @classmethod
    def _material(cls, document: Any) -> tuple[int, int]:
        if not isinstance(document, dict) or not isinstance(document.get("key"), str):
            raise KeyFileCorrupt("Key document must be an object with a string 'key'.")
        return decode_key(document["key"])


class PublicKey(RSAKey):
    """RSA Public Key, optionally bound to the email of its owner.

    Attributes:
        expo: The public exponent.
        mod: The modulus of the keypair.
        email: Owner email, empty until the key is published.
    """

    def __init__(self, expo: int, mod: int, email: str = "") -> None:
        super().__init__(expo, mod)
        self.email = email

    def encrypt(self, message: bytes) -> bytes:
        """Use the public key to encrypt the message.

        Args:
            message: The message bytes. Read as a big-endian integer, which must be below the modulus.

        Returns:
            The ciphertext bytes.
        """
        return integer_to_bytes(self.c_rsa(bytes_to_integer(message)))

    def encrypt_text(self, message: str, encoding: str = "utf-8") -> str:
        """Encrypt a text message.

        Args:
            message: The message to encrypt.
            encoding: The payload encoding. Defaults to utf-8.

        Returns:
            Base64 encoded ciphertext.
        """
        return b64_enc(self.c_rsa(bytes_to_integer(message.encode(encoding))))

    def to_json(self) -> dict[str, str]:
        return {"key": self.key, "email": self.email}

    @classmethod
    def from_key(cls, blob: str, email: str = "") -> "PublicKey":
        expo, mod = decode_key(blob)
        return cls(expo, mod, email)

    @classmethod
    def from_json(cls, document: Any) -> "PublicKey":
        """Build a public key from its JSON document.

        Raises:
            KeyFileCorrupt: If the document does not have the expected shape.
            KeyMaterialCorrupt: If the key blob cannot be decoded.
        """
        expo, mod = cls._material(document)
        email = document.get("email") or ""
        if not isinstance(email, str):
            raise KeyFileCorrupt("Public key email must be a string.")
        return cls(expo, mod, email)


class PrivateKey(RSAKey):
    """RSA Private Key, along with the emails it may receive messages for.

    Attributes:
        expo: The private exponent.
        mod: The modulus of the keypair.
        emails: Emails whose public key has been published from this keypair.
    """

    def __init__(self, expo: int, mod: int, emails: Iterable[str] = ()) -> None:
        super().__init__(expo, mod)
        self.emails: set[str] = set(emails)

    def add_email(self, email: str) -> None:
        self.emails.add(email)

    def decrypt(self, ciphertext: bytes) -> bytes:
        """Decrypts the ciphertext bytes using the private key.

        Leading zero bytes of the original plaintext are not recovered.
        """
        return integer_to_bytes(self.c_rsa(bytes_to_integer(ciphertext)))

    def decrypt_text(self, message: str, encoding: str = "utf-8") -> str:
        """Decrypts a base64 ciphertext into text.

        Args:
            message: Base64 encoded ciphertext.
            encoding: The payload encoding. Defaults to utf-8.

        Returns:
            The decrypted message.
        """
        return integer_to_bytes(self.c_rsa(b64_dec(message))).decode(encoding)

    def to_json(self) -> dict[str, Any]:
        return {"key": self.key, "email": sorted(self.emails)}

    @classmethod
    def from_key(cls, blob: str, emails: Iterable[str] = ()) -> "PrivateKey":
        expo, mod = decode_key(blob)
        return cls(expo, mod, emails)

    @classmethod
    def from_json(cls, document: Any) -> "PrivateKey":
        """Build a private key from its JSON document.

        Raises:
            KeyFileCorrupt: If the document does not have the expected shape.
            KeyMaterialCorrupt: If the key blob cannot be decoded.
        """
        expo, mod = cls._material(document)
        emails = document.get("email") or []
        if isinstance(emails, str):
            emails = [emails]
        if not isinstance(emails, list) or not all(isinstance(em, str) for em in emails):
            raise KeyFileCorrupt("Private key email must be a list of strings.")
        return cls(expo, mod, emails)


def generate_keys(size: int) -> tuple[PublicKey, PrivateKey]:
    """Generates a fresh key pair.

    Args:
        size: The size of the RSA Key in bits.

    Returns:
        The (public, private) key pair, neither bound to an email.

    Raises:
        InvalidKeySize: If `size` is out of range or not a multiple of 8.
    """
    (e, n), (d, _) = keygen.generate_key_pair(size)
    return PublicKey(e, n), PrivateKey(d, n)
