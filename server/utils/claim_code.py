# Claim code generation

import re
import secrets
import string

CLAIM_CODE_ALPHABET = string.digits + string.ascii_uppercase
CLAIM_CODE_SEGMENT_LENGTH = 3
CLAIM_CODE_PATTERN = re.compile(r'^[0-9A-Z]{3}-[0-9A-Z]{3}$')


def _segment() -> str:
    return ''.join(secrets.choice(CLAIM_CODE_ALPHABET) for _ in range(CLAIM_CODE_SEGMENT_LENGTH))


def generate_claim_code() -> str:
    """
    Generate a human-shareable claim code such as 'X7K-Q2M'.

    Uniqueness is not guaranteed here; callers retry on collision.
    """
    return f"{_segment()}-{_segment()}"


def normalize_claim_code(claim_code: str) -> str:
    """Staff type codes by hand: trim and upper-case them"""
    return (claim_code or '').strip().upper()


def is_valid_claim_code(claim_code: str) -> bool:
    return bool(CLAIM_CODE_PATTERN.match(claim_code or ''))
