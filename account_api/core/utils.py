"""
Utility helpers shared across routers/services.
"""

import hashlib
from typing import Optional

from email_validator import EmailNotValidError, validate_email

from .config import get_settings

GRAVATAR_BASE = "https://gravatar.com/avatar"


def absolute_url(path: str, base: Optional[str] = None) -> str:
    """
    Turn a relative path into an absolute URL using PUBLIC_BASE_URL.
    """
    base_url = (base or get_settings().public_base_url).rstrip("/")
    if not path:
        return base_url + "/"
    if path.startswith("http://") or path.startswith("https://"):
        return path
    if not path.startswith("/"):
        path = "/" + path
    return base_url + path


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def is_valid_email(email: Optional[str]) -> bool:
    value = (email or "").strip()
    if not value:
        return False
    try:
        result = validate_email(value, check_deliverability=False, globally_deliverable=False)
    except EmailNotValidError:
        return False
    # reserved names (".test", ".local") pass; dotless hosts and single-letter TLDs ("a@a.a") do not
    if "." not in result.domain:
        return False
    tld = result.domain.rsplit(".", 1)[-1]
    return len(tld) >= 2


def gravatar(email: Optional[str], size: int = 200) -> str:
    if not email:
        return f"{GRAVATAR_BASE}/?s={size}&d=retro"
    digest = hashlib.md5(email.encode("utf-8")).hexdigest()
    return f"{GRAVATAR_BASE}/{digest}?s={size}&d=retro"
