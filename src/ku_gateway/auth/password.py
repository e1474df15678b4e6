"""bcrypt password hashing (the `bcrypt` package, no passlib)."""

import bcrypt

# Checked against when the account does not exist, so an unknown username
# costs the same bcrypt round as a wrong password.
_DUMMY_HASH = bcrypt.hashpw(b"unknown-account", bcrypt.gensalt()).decode("utf-8")


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str | None) -> bool:
    """False for a wrong password, a missing account or a malformed stored hash."""
    try:
        matched = bcrypt.checkpw(plain.encode("utf-8"), (hashed or _DUMMY_HASH).encode("utf-8"))
    except ValueError:
        return False
    return matched and hashed is not None
