import asyncio

import bcrypt

from recipe_api.auth.constants import BCRYPT_ROUNDS


class CorruptCredential(Exception):
    """The stored password digest is not a valid bcrypt hash."""


def _encode(plaintext: str) -> bytes:
    # bcrypt only looks at the first 72 bytes
    return plaintext.encode("utf-8")[:72]


def _hash(plaintext: str) -> str:
    salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
    return bcrypt.hashpw(_encode(plaintext), salt).decode("utf-8")


def _check(plaintext: str, digest: str) -> bool:
    try:
        return bcrypt.checkpw(_encode(plaintext), digest.encode("utf-8"))
    except ValueError as e:
        raise CorruptCredential(str(e)) from e


async def hash_password(plaintext: str) -> str:
    """Hash a password with a fresh salt. Runs off the event loop."""
    return await asyncio.to_thread(_hash, plaintext)


async def verify_password(plaintext: str, digest: str) -> bool:
    """Return whether `plaintext` matches `digest`.

    A mismatch returns False; only a malformed digest raises CorruptCredential.
    """
    if not digest:
        raise CorruptCredential("Empty password digest")
    return await asyncio.to_thread(_check, plaintext, digest)
