"""Generated business identifiers (asset tags, SKUs)."""

import secrets
import time


def generate_code(prefix: str) -> str:
    """PREFIX-<last 6 digits of epoch millis>-<2 random digits>"""
    millis = str(int(time.time() * 1000))[-6:]
    return f"{prefix.upper()}-{millis}-{secrets.randbelow(100):02d}"


def category_prefix(category, default: str) -> str:
    """First three letters of a category name, or the default prefix"""
    letters = "".join(ch for ch in (category or "") if ch.isalnum())
    return letters[:3].upper() if len(letters) >= 3 else default
