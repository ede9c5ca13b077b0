"""
Password hashing for member and staff accounts.

New hashes are bcrypt. Verification also accepts werkzeug ``scrypt:`` /
``pbkdf2:`` hashes for staff rows imported from elsewhere.
"""

import bcrypt
from werkzeug.security import check_password_hash

BCRYPT_ROUNDS = 12
_BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")


def hash_password(plain_password: str) -> str:
    digest = bcrypt.hashpw(plain_password.encode(), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return digest.decode()


def verify_password(plain_password: str, password_hash: str) -> bool:
    """True when *plain_password* matches *password_hash*; False for an empty hash."""
    if not password_hash:
        return False
    if not password_hash.startswith(_BCRYPT_PREFIXES):
        return check_password_hash(password_hash, plain_password)
    return bcrypt.checkpw(plain_password.encode(), password_hash.encode())
