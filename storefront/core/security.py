"""
Password hashing and token helpers.
"""

import random
import secrets
import string
import time

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def new_session_token() -> str:
    """Opaque bearer token for an auth session."""
    return secrets.token_urlsafe(32)


def new_chat_session_id() -> str:
    """Conversation id sent to the assistant webhook, e.g. ``session_1718000000000_k3j9x0a2b``."""
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=9))
    return f"session_{int(time.time() * 1000)}_{suffix}"
