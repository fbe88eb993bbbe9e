"""Peer-to-peer RSA Messaging in an Academic Sense.

Provides self-implemented RSA key generation (Miller-Rabin probable primes), a compact key material encoding, and
textbook RSA encryption and decryption, along with the local key store and remote directory client used to exchange
keys and messages.

Typical usage example:

    pub, priv = generate_keys(1024)
    c = pub.encrypt_text("Hi there!")
    r = priv.decrypt_text(c)
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from rsamessenger.errors import InvalidKeySize
from rsamessenger.errors import KeyMaterialCorrupt
from rsamessenger.errors import MessengerError
from rsamessenger.keygen import generate_key_pair
from rsamessenger.keygen import generate_probable_prime
from rsamessenger.keygen import is_probably_prime
from rsamessenger.keygen import mod_inverse
from rsamessenger.rsa import decode_key
from rsamessenger.rsa import encode_key
from rsamessenger.rsa import generate_keys
from rsamessenger.rsa import PrivateKey
from rsamessenger.rsa import PublicKey

__version__ = "0.1.0"
__all__ = [
    "PublicKey",
    "PrivateKey",
    "encode_key",
    "decode_key",
    "generate_keys",
    "generate_key_pair",
    "generate_probable_prime",
    "is_probably_prime",
    "mod_inverse",
    "InvalidKeySize",
    "KeyMaterialCorrupt",
    "MessengerError",
]
