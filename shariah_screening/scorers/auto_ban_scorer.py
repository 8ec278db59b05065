"""Auto-Ban Evaluator: reflects the precomputed industry / security-type ban."""

from typing import Optional

from ..schemas.enums import ScreenStatus
from ..schemas.results import AutoBanResult
from ..schemas.screening_record import ScreeningRecord


class AutoBanScorer:
    """Packages the auto-ban decision; the ban list itself is maintained upstream.

    ``auto_banned`` True -> FAIL, False -> PASS. When the flag was never
    screened a precomputed ``auto_banned_status`` is used, otherwise the
    methodology is unavailable.
    """

    def evaluate(self, record: Optional[ScreeningRecord]) -> AutoBanResult:
        if record is None:
            return AutoBanResult()

        if record.auto_banned is not None:
            status = ScreenStatus.FAIL if record.auto_banned else ScreenStatus.PASS
        else:
            status = record.auto_banned_status

        return AutoBanResult(
            status=status,
            reason=record.auto_banned_reason_clean,
            summary=record.auto_banned_summary,
            industry=record.industry,
            security_type=record.security_type,
            available=status is not None,
        )
