"""Booking reference generation: VM + 6 clock digits + 4 random characters."""

import secrets
import string
import time

REFERENCE_PREFIX = 'VM'
REFERENCE_ALPHABET = string.digits + string.ascii_uppercase
RANDOM_LENGTH = 4
REFERENCE_LENGTH = len(REFERENCE_PREFIX) + 6 + RANDOM_LENGTH


def generate_reference(now_ms: int | None = None) -> str:
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    clock = str(now_ms)[-6:].zfill(6)
    suffix = ''.join(secrets.choice(REFERENCE_ALPHABET) for _ in range(RANDOM_LENGTH))
    return f"{REFERENCE_PREFIX}{clock}{suffix}"


def is_valid_reference(value: str) -> bool:
    return (
        len(value) == REFERENCE_LENGTH
        and value.startswith(REFERENCE_PREFIX)
        and value[2:8].isdigit()
        and all(ch in REFERENCE_ALPHABET for ch in value[8:])
    )
