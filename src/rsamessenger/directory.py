"""Client for the shared key/message directory.

The directory is a plain HTTP store with two resource families, `/Key/{email}` and `/Message/{email}`, both read with
GET and overwritten with PUT. There is no authentication: anyone may replace any stored key or message.

Typical usage example:

    remote = RemoteDirectory("http://localhost:5000")
    remote.put_key("alice@example.com", pub)
    msg = remote.get_message("alice@example.com")
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import datetime
import logging
from typing import Any, NamedTuple
from urllib.parse import quote

import requests

from rsamessenger.errors import DirectoryError
from rsamessenger.errors import KeyMaterialCorrupt
from rsamessenger.rsa import PublicKey

logger = logging.getLogger(__name__)


class Message(NamedTuple):
    """An encrypted message as held by the directory.

    Attributes:
        email: Recipient email.
        content: Base64 encoded ciphertext integer.
        timestamp: Creation time, ISO-8601.
    """
    email: str
    content: str
    timestamp: str

    @classmethod
    def create(cls, email: str, content: str) -> "Message":
        now = datetime.datetime.now(datetime.timezone.utc)
        return cls(email, content, now.isoformat())

    def to_json(self) -> dict[str, str]:
        return self._asdict()

    @classmethod
    def from_json(cls, document: Any) -> "Message":
        if not isinstance(document, dict) or not isinstance(document.get("content"), str):
            raise DirectoryError("Message document must be an object with a string 'content'.")
        return cls(str(document.get("email") or ""), document["content"], str(document.get("timestamp") or ""))


class RemoteDirectory:
    """HTTP access to the key/message directory.

    Attributes:
        base_url: Root URL of the directory server.
        timeout: Seconds before a request is abandoned.
        session: The requests session used for all calls.
    """

    def __init__(self, base_url: str, timeout: float = 10, session: requests.Session | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session if session is not None else requests.Session()

    def _url(self, family: str, email: str) -> str:
        return f"{self.base_url}/{family}/{quote(email, safe='@')}"

    def _get(self, family: str, email: str) -> Any:
        url = self._url(family, email)
        logger.debug("GET %s", url)
        try:
            response = self.session.get(url, timeout=self.timeout)
            if response.status_code == 404:
                return None
            response.raise_for_status()
        except requests.RequestException as exc:
            raise DirectoryError(f"Could not fetch {family} for {email}: {exc}") from exc
        if not response.content.strip():
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise DirectoryError(f"Directory returned malformed JSON for {family} {email}.") from exc

    def _put(self, family: str, email: str, document: dict[str, Any]) -> None:
        url = self._url(family, email)
        logger.debug("PUT %s", url)
        try:
            response = self.session.put(url, json=document, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise DirectoryError(f"Could not store {family} for {email}: {exc}") from exc

    def get_key(self, email: str) -> PublicKey | None:
        """Fetch the public key published under `email`.

        Returns:
            The public key, or None if the directory has none.

        Raises:
            DirectoryError: If the request fails or the key document is malformed.
        """
        document = self._get("Key", email)
        if document is None:
            return None
        try:
            return PublicKey.from_json(document)
        except KeyMaterialCorrupt as exc:
            raise DirectoryError(f"Directory returned a malformed key for {email}.") from exc

    def put_key(self, email: str, key: PublicKey) -> None:
        self._put("Key", email, key.to_json())

    def get_message(self, email: str) -> Message | None:
        """Fetch the message waiting for `email`, or None if there is none."""
        document = self._get("Message", email)
        return None if document is None else Message.from_json(document)

    def put_message(self, email: str, message: Message) -> None:
        self._put("Message", email, message.to_json())
