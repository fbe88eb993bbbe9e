"""Typed failures raised by RSA Messenger.

Every failure derives from `MessengerError`, so the command line can reduce any of them to a single line of text.
Each one additionally inherits the builtin exception it refines, which keeps `except ValueError` style handling
working for callers that do not care about the distinction.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0


class MessengerError(Exception):
    """Base class of all RSA Messenger failures."""


class InvalidKeySize(MessengerError, ValueError):
    """Requested key size is not a multiple of 8 within [32, 2**16] bits."""


class KeyMaterialCorrupt(MessengerError, ValueError):
    """A key blob could not be decoded."""


class KeyFileCorrupt(KeyMaterialCorrupt):
    """A local key file is not a valid key document."""


class NonInvertibleExponent(MessengerError, ArithmeticError):
    """The exponent has no inverse for the given modulus. Retried internally during key generation."""


class MissingKeyError(MessengerError, LookupError):
    """A key or message needed for the operation is not available."""


class DirectoryError(MessengerError, IOError):
    """The remote key/message directory could not be reached or refused the request."""
