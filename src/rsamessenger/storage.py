"""Local persistence of key material as small JSON documents.

Each key lives in its own `<name>.key` file: `public.key` and `private.key` for the local keypair, and
`<email>.key` for public keys fetched for correspondents.

Typical usage example:

    store = KeyStore(pathlib.Path.cwd())
    store.put_private(priv)
    pub = store.get_public("alice@example.com")
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import json
import logging
import pathlib
from typing import Any

from rsamessenger.errors import KeyFileCorrupt
from rsamessenger.rsa import PrivateKey
from rsamessenger.rsa import PublicKey

logger = logging.getLogger(__name__)

PUBLIC_NAME = "public"
PRIVATE_NAME = "private"
SUFFIX = ".key"


class KeyStore:
    """Key files in a single directory.

    Attributes:
        directory: Where key files are read from and written to.
    """

    def __init__(self, directory: pathlib.Path | None = None) -> None:
        self.directory = pathlib.Path.cwd() if directory is None else pathlib.Path(directory)

    def path_for(self, name: str) -> pathlib.Path:
        return self.directory / f"{name}{SUFFIX}"

    def get(self, name: str) -> dict[str, Any] | None:
        """Read the key document stored under `name`.

        Args:
            name: The key role (`public`/`private`) or a correspondent email.

        Returns:
            The parsed document, or None if no such file exists.

        Raises:
            KeyFileCorrupt: If the file does not contain a JSON object.
        """
        path = self.path_for(name)
        if not path.is_file():
            logger.debug("No key file at %s", path)
            return None
        with open(path, "r", encoding="utf-8") as f:
            try:
                document = json.load(f)
            except json.JSONDecodeError as exc:
                raise KeyFileCorrupt(f"Key file {path} is not valid JSON.") from exc
        if not isinstance(document, dict):
            raise KeyFileCorrupt(f"Key file {path} does not hold a key document.")
        return document

    def put(self, name: str, document: dict[str, Any]) -> None:
        """Write `document` under `name`, replacing any existing file."""
        path = self.path_for(name)
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(document, f)
        logger.debug("Wrote key file %s", path)

    @staticmethod
    def correspondent_name(email: str) -> str:
        """File name for the fetched key of `email`.

        Raises:
            ValueError: If `email` is empty, names one of the local key files, or contains a path separator.
        """
        if not email or email in (PUBLIC_NAME, PRIVATE_NAME):
            raise ValueError(f"{email!r} cannot be used as a correspondent email.")
        if "/" in email or "\\" in email or email in (".", ".."):
            raise ValueError(f"{email!r} contains a path separator.")
        return email

    def get_public(self, email: str | None = None) -> PublicKey | None:
        """Load the local public key, or the fetched public key of `email` if given."""
        document = self.get(PUBLIC_NAME if email is None else self.correspondent_name(email))
        return None if document is None else PublicKey.from_json(document)

    def put_public(self, key: PublicKey, email: str | None = None) -> None:
        self.put(PUBLIC_NAME if email is None else self.correspondent_name(email), key.to_json())

    def get_private(self) -> PrivateKey | None:
        document = self.get(PRIVATE_NAME)
        return None if document is None else PrivateKey.from_json(document)

    def put_private(self, key: PrivateKey) -> None:
        self.put(PRIVATE_NAME, key.to_json())
