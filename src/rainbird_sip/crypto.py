"""Encryption envelope for Rain Bird tunnelSip requests.

Wire format (both directions):
    [32-byte SHA-256 of JSON body][16-byte IV][AES-256-CBC ciphertext]

The plaintext is the JSON body followed by a 0x00 0x10 sentinel and padded
to the block size with 0x10 bytes. The pad byte is always 0x10 regardless
of the pad length; this is NOT PKCS#7 and must not be "fixed".
"""

import hashlib
import json
import os

from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import MalformedEnvelopeError, SealingError

BLOCK_SIZE = 16
HASH_SIZE = 32
IV_SIZE = 16

SENTINEL = b"\x00\x10"
PAD_BYTE = b"\x10"

# Control bytes removed from decrypted text (sentinel, padding, newline)
_STRIP_TABLE = {0x10: None, 0x0A: None, 0x00: None}


def derive_key(password: str) -> bytes:
    """AES-256 key: SHA-256 of the UTF-8 password."""
    return hashlib.sha256(password.encode("utf-8")).digest()


def add_padding(data: bytes) -> bytes:
    """
    Pad to a multiple of BLOCK_SIZE with PAD_BYTE.
    Always adds 1..16 bytes; aligned input gets a full extra block.
    """
    count = BLOCK_SIZE - len(data) % BLOCK_SIZE
    return data + PAD_BYTE * count


def strip_padding(text: str) -> str:
    """Remove every 0x10, 0x0A and 0x00 character."""
    return text.translate(_STRIP_TABLE)


def _cipher(key: bytes, iv: bytes) -> Cipher:
    return Cipher(algorithms.AES(key), modes.CBC(iv), backend=default_backend())


def seal(body, password: str) -> bytes:
    """Serialize and encrypt a JSON-RPC body into the wire envelope."""
    try:
        text = json.dumps(body, separators=(",", ":"))
        plaintext = text.encode("utf-8")
        key = derive_key(password)
    except (TypeError, ValueError) as exc:
        raise SealingError(f"Error encrypting request body: {exc}") from exc

    iv = os.urandom(IV_SIZE)
    encryptor = _cipher(key, iv).encryptor()
    ciphertext = encryptor.update(add_padding(plaintext + SENTINEL)) + encryptor.finalize()

    # Integrity tag over the un-padded body; the controller side does not check it
    digest = hashlib.sha256(plaintext).digest()
    return digest + iv + ciphertext


def unseal(data: bytes, password: str):
    """Decrypt a wire envelope and parse the JSON body.

    The leading hash is skipped, not verified.
    """
    if len(data) < HASH_SIZE + IV_SIZE:
        raise MalformedEnvelopeError(
            f"Envelope too short: {len(data)} bytes")

    iv = data[HASH_SIZE:HASH_SIZE + IV_SIZE]
    ciphertext = data[HASH_SIZE + IV_SIZE:]
    if len(ciphertext) % BLOCK_SIZE:
        raise MalformedEnvelopeError(
            f"Ciphertext is not a whole number of blocks: {len(ciphertext)} bytes")

    try:
        key = derive_key(password)
        decryptor = _cipher(key, iv).decryptor()
        plaintext = decryptor.update(ciphertext) + decryptor.finalize()
        text = plaintext.decode("utf-8")
        return json.loads(strip_padding(text))
    except ValueError as exc:
        raise MalformedEnvelopeError(f"Cannot decode reply: {exc}") from exc
