# scanner/identity.py
from dataclasses import dataclass
from typing import Optional

from snap.utils.identity import registration_number_from_email, first_name


@dataclass(frozen=True)
class StudentIdentity:
    """Identity handed over by the external identity provider."""

    student_id: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None

    @property
    def registration_number(self):
        return registration_number_from_email(self.email)

    @property
    def first_name(self):
        return first_name(self.full_name)
