"""Password hashing compatible with Better-Auth's scrypt format.

Better-Auth uses: scrypt(N=16384, r=16, p=1, dkLen=64)
Output format: hex(salt):hex(derived_key)
"""

import hashlib
import hmac
import os

_N = 16384
_R = 16
_P = 1
_DKLEN = 64
_MAXMEM = 128 * _N * _R * 2


def _derive(password: str, salt_hex: str) -> bytes:
    # Better-Auth passes the hex string (not raw bytes) as salt to scrypt
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt_hex.encode("utf-8"),
        n=_N,
        r=_R,
        p=_P,
        dklen=_DKLEN,
        maxmem=_MAXMEM,
    )


def hash_password(password: str) -> str:
    """Hash a password into ``salt:key`` hex form."""
    salt_hex = os.urandom(16).hex()
    return f"{salt_hex}:{_derive(password, salt_hex).hex()}"


def verify_password(password: str, stored: str) -> bool:
    """Check a password against a stored ``salt:key`` hash in constant time."""
    salt_hex, sep, key_hex = stored.partition(":")
    if not sep or not salt_hex or not key_hex:
        return False
    try:
        expected = bytes.fromhex(key_hex)
    except ValueError:
        return False
    return hmac.compare_digest(_derive(password, salt_hex), expected)
