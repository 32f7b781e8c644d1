import hashlib
import secrets


def generate_token() -> str:
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    # Only the digest is stored.
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
