from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from contract_seal.errors import CertificateConstructionError
from contract_seal.my_types import Bool, Int, Optional


class Timestamp:
    """
    Certificate validity windows are expressed in UTC. This keeps every "now" in the project timezone aware.
    """

    @staticmethod
    def now() -> datetime:
        return datetime.now(timezone.utc)


@dataclass(kw_only=True, frozen=True)
class ValidityWindow:
    not_before: datetime
    not_after: datetime

    @staticmethod
    def starting_now(days: Int = 365, now: Optional[datetime] = None) -> ValidityWindow:
        # A window opening now and closing after the given number of days.
        start = now or Timestamp.now()
        try:
            not_after = start + timedelta(days=days)
        except OverflowError as error:
            raise CertificateConstructionError(f"A validity of {days} days is out of range") from error
        return ValidityWindow(not_before=start, not_after=not_after)

    def is_well_formed(self) -> Bool:
        return self.not_before < self.not_after

    def contains(self, moment: Optional[datetime] = None) -> Bool:
        moment = moment or Timestamp.now()
        return self.not_before <= moment <= self.not_after
