import secrets
import string
import time
from functools import wraps
from typing import Optional

from email_validator import validate_email, EmailNotValidError

from .errors import ValidationFailed
from .log import LOG


def random_string(length=10, include_digits=False, letters=None):
    """Generate a random string of fixed length"""
    if letters is None:
        letters = string.ascii_lowercase
        if include_digits:
            letters += string.digits

    return "".join(secrets.choice(letters) for _ in range(length))


def ensure_str(value, error: str, optional: bool = True):
    """Reject a value a JSON client sent with another type than string"""
    if value is None and optional:
        return
    if not isinstance(value, str):
        raise ValidationFailed(error)


def sanitize_email(email_address: Optional[str], not_lower=False) -> str:
    if email_address:
        email_address = email_address.strip().replace(" ", "").replace("\n", " ")
        if not not_lower:
            email_address = email_address.lower()
    return email_address


def is_valid_email(email_address: Optional[str]) -> bool:
    if not email_address:
        return False
    try:
        # Prevent addresses with unicode characters in them for now.
        validate_email(
            email_address, check_deliverability=False, allow_smtputf8=False
        )
        return True
    except EmailNotValidError:
        return False


def get_email_local_part(address: str) -> str:
    return address[: address.rfind("@")]


def debug_info(func):
    @wraps(func)
    def wrap(*args, **kwargs):
        start = time.time()
        LOG.d("start %s %s %s", func.__name__, args, kwargs)
        ret = func(*args, **kwargs)
        LOG.d("finish %s. Takes %s seconds", func.__name__, time.time() - start)
        return ret

    return wrap
