# utils/identity.py
"""Helpers for identities issued by the external identity provider."""

import re

# "first.21bce1234@uni.edu" -> "21bce1234"
_REGISTRATION_NUMBER_RE = re.compile(r'\.([a-zA-Z0-9]+)@')


def registration_number_from_email(email):
    """Extract the registration number embedded in an institutional email, upper-cased."""
    if not email:
        return None
    match = _REGISTRATION_NUMBER_RE.search(email)
    return match.group(1).upper() if match else None


def first_name(full_name, default='Student'):
    if not full_name or not full_name.strip():
        return default
    return full_name.split()[0]
