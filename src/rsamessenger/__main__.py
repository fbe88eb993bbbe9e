"""The Command Line Interface for the messenger.

One subcommand per operation. Failures are reported as a single line of text; the exit status is the same whether an
operation succeeded or not.

Typical usage example:

    rsamessenger keyGen 1024
    OR
    python -m rsamessenger sendMsg alice@example.com "Hi there!"
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import argparse
import logging
import pathlib
import typing

import rsamessenger
from rsamessenger.config import load_settings
from rsamessenger.directory import RemoteDirectory
from rsamessenger.errors import InvalidKeySize
from rsamessenger.errors import MessengerError
from rsamessenger.messenger import Messenger
from rsamessenger.storage import KeyStore


class HelpData(typing.NamedTuple):
    description: str
    arguments: tuple[str, ...] = ()


help_dict: dict[str, HelpData] = {
    "keyGen":
        HelpData("Generates a keypair of size <keysize> bits and stores it locally, in the key directory.",
                 ("keysize",)),
    "sendKey":
        HelpData("Sends the public key generated by keyGen to the server, under the given <email>.", ("email",)),
    "getKey":
        HelpData("Retrieves the public key for a user's <email> and stores it locally, in the key directory.",
                 ("email",)),
    "sendMsg":
        HelpData("Encrypts <plaintext> with the public key of <email> and sends it to the server.",
                 ("email", "plaintext")),
    "getMsg":
        HelpData("Retrieves and decrypts the message for <email>, if the private key allows it.", ("email",)),
}

argument_help = {
    "keysize": "Key size in bits, a multiple of 8 in [32, 65536].",
    "email": "Email address of the key owner.",
    "plaintext": "The message to send.",
}

corep = argparse.ArgumentParser(prog="rsamessenger", description="Exchange RSA encrypted messages.")
corep.add_argument("--version", "-v", action="version", version=f"%(prog)s {rsamessenger.__version__}")
corep.add_argument("--server", "-s", help="Base URL of the key/message server. Overrides RSAMESSENGER_SERVER.")
corep.add_argument("--key-dir", "-k", type=pathlib.Path, help="Directory holding key files. Overrides "
                   "RSAMESSENGER_KEY_DIR.")
corep.add_argument("--verbose", action="store_true", help="Enable debug logging.")
commands = corep.add_subparsers(dest="subcommand", title="Subcommands")
for command, data in help_dict.items():
    sub = commands.add_parser(command, help=data.description, description=data.description)
    for arg in data.arguments:
        sub.add_argument(arg, type=int if arg == "keysize" else str, help=argument_help[arg])


def build_messenger(args: argparse.Namespace) -> Messenger:
    """Wire a Messenger from the environment settings, with command line overrides applied."""
    settings = load_settings()
    server = args.server or settings.server
    key_dir = args.key_dir or settings.key_dir
    return Messenger(KeyStore(key_dir), RemoteDirectory(server, settings.timeout))


def run(args: argparse.Namespace, prntr: typing.Callable = print) -> None:
    """Execute the parsed subcommand, reporting the outcome through `prntr`."""
    messenger = build_messenger(args)
    match args.subcommand:
        case "keyGen":
            try:
                messenger.key_gen(args.keysize)
            except InvalidKeySize:
                prntr("Invalid key size: Must be a multiple of 8 in the range [32, 2^16].")
                return
            prntr("Key pair generated.")
        case "sendKey":
            messenger.send_key(args.email)
            prntr("Key saved.")
        case "getKey":
            messenger.get_key(args.email)
            prntr(f"Key for {args.email} saved.")
        case "sendMsg":
            messenger.send_msg(args.email, args.plaintext)
            prntr("Message written.")
        case "getMsg":
            prntr(messenger.get_msg(args.email))


def main(argv: typing.Sequence[str] | None = None) -> None:
    """Parse the command line and run the requested operation."""
    try:
        args = corep.parse_args(argv)
    except SystemExit:
        # argparse has already printed usage or help.
        return
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    if not args.subcommand:
        corep.print_help()
        return
    try:
        run(args)
    except (MessengerError, ValueError) as exc:
        print(exc)


if __name__ == "__main__":
    main()
