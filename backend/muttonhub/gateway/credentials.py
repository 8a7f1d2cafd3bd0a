# Overview: Password hashing and session token primitives for the sql gateway.

"""
Credentials

WHY: The local gateway issues its own sessions, so it needs the same two
primitives the hosted auth service provides: slow password hashes and
high-entropy bearer tokens.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS, 12 by default)
- Tokens are 32 random bytes (64 hex chars), stored as SHA-256 hashes
"""

import hashlib
import secrets

import bcrypt


def hash_password(password: str, rounds: int = 12) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Malformed hashes verify as False rather than raising.
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """
    SHA-256 for storage.

    WHY not bcrypt: tokens are already high-entropy, and every request
    looks one up by hash.
    """
    return hashlib.sha256(token.encode('utf-8')).hexdigest()
