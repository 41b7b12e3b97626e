# scanner/cooldown.py
"""
Student session lifecycle on the scanning device.

Logging out produces a LoginCooldown; the next StudentSession.start() must be handed that
value and refuses to start until it has elapsed. CooldownStore keeps the value between
runs of the command line client.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from .errors import LoginCooldownActive
from .identity import StudentIdentity

logger = logging.getLogger('scanner')

DEFAULT_COOLDOWN_MINUTES = 10


def _utcnow():
    return datetime.now(timezone.utc)


def _aware(value):
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class LoginCooldown:
    until: datetime

    @classmethod
    def starting(cls, now=None, minutes=DEFAULT_COOLDOWN_MINUTES):
        return cls(until=_aware(now or _utcnow()) + timedelta(minutes=minutes))

    def is_active(self, now=None):
        return _aware(now or _utcnow()) < _aware(self.until)

    def remaining(self, now=None):
        return max(_aware(self.until) - _aware(now or _utcnow()), timedelta(0))

    def to_dict(self):
        return {'until': _aware(self.until).isoformat()}

    @classmethod
    def from_dict(cls, data):
        return cls(until=_aware(datetime.fromisoformat(data['until'])))


@dataclass
class StudentSession:
    identity: StudentIdentity
    started_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def start(cls, identity, cooldown=None, now=None):
        """
        Begin a session for a signed-in student.

        Raises:
            LoginCooldownActive: the cooldown from the previous logout has not elapsed
        """
        now = _aware(now or _utcnow())
        if cooldown is not None and cooldown.is_active(now):
            logger.warning(f"Sign-in for {identity.student_id} refused, cooldown until {cooldown.until.isoformat()}")
            raise LoginCooldownActive(_aware(cooldown.until))
        return cls(identity=identity, started_at=now)

    def logout(self, now=None, minutes=DEFAULT_COOLDOWN_MINUTES):
        """End the session and return the cooldown the next start() must honour."""
        logger.info(f"Student {self.identity.student_id} signed out")
        return LoginCooldown.starting(now, minutes)


class CooldownStore:
    """JSON file holding the pending cooldown, if any."""

    def __init__(self, path):
        self.path = path

    def load(self):
        try:
            with open(self.path, encoding='utf-8') as fh:
                return LoginCooldown.from_dict(json.load(fh))
        except FileNotFoundError:
            return None
        except (ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable cooldown state in {self.path}: {e}")
            return None

    def save(self, cooldown):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, 'w', encoding='utf-8') as fh:
            json.dump(cooldown.to_dict(), fh)

    def clear(self):
        try:
            os.remove(self.path)
        except FileNotFoundError:
            pass
