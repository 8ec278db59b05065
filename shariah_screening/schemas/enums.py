"""Enumerations shared by the record model, scorers and aggregators."""

from enum import Enum
from typing import Optional

# =============================================================================
# Composite verdict
# =============================================================================


class Classification(str, Enum):
    """Four-state composite (Invesense) verdict.

    Absence of a classification is not a member: it means the methodology is
    unavailable for the record.
    """

    COMPLIANT = "COMPLIANT"
    COMPLIANT_WITH_PURIFICATION = "COMPLIANT_WITH_PURIFICATION"
    NON_COMPLIANT = "NON_COMPLIANT"
    DOUBTFUL_REVIEW = "DOUBTFUL_REVIEW"

    @property
    def label(self) -> str:
        """Human-readable label for the dashboard."""
        return {
            "COMPLIANT": "Compliant",
            "COMPLIANT_WITH_PURIFICATION": "Compliant with Purification",
            "NON_COMPLIANT": "Non-Compliant",
            "DOUBTFUL_REVIEW": "Doubtful - Review Required",
        }[self.value]

    @property
    def color(self) -> str:
        """Colour token consumed by badges and charts."""
        return {
            "COMPLIANT": "compliant",
            "COMPLIANT_WITH_PURIFICATION": "warning",
            "NON_COMPLIANT": "non-compliant",
            "DOUBTFUL_REVIEW": "doubtful",
        }[self.value]

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Classification"]:
        """Normalise a raw verdict string; unknown values return None.

        Accepts case and separator variants ("compliant with purification",
        "Non-Compliant") and the short legacy "DOUBTFUL".
        """
        if value is None:
            return None
        key = str(value).strip().upper().replace("-", "_").replace(" ", "_")
        if not key:
            return None
        if key == "DOUBTFUL":
            key = "DOUBTFUL_REVIEW"
        try:
            return cls(key)
        except ValueError:
            return None


NOT_AVAILABLE_LABEL = "Not Available"
NO_DATA_COLOR = "no-data"
AUTO_BANNED_LABEL = "Automatically Non-Compliant"


# =============================================================================
# Ratio / methodology status
# =============================================================================


class ScreenStatus(str, Enum):
    """Pass/fail outcome for ratio-style methodologies."""

    PASS = "PASS"
    FAIL = "FAIL"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ScreenStatus"]:
        """Parse a precomputed status; only PASS/FAIL are authoritative."""
        if value is None:
            return None
        key = str(value).strip().upper()
        if key == "PASS":
            return cls.PASS
        if key == "FAIL":
            return cls.FAIL
        return None


class BusinessActivityStatus(str, Enum):
    """Qualitative business-activity tile state."""

    PASS = "PASS"
    REVIEW = "REVIEW"
    FAIL = "FAIL"


class Methodology(str, Enum):
    """The three independent screening methodologies."""

    NUMERIC = "numeric"
    AUTO_BAN = "auto_ban"
    COMPOSITE = "composite"

    @property
    def display_name(self) -> str:
        return {
            "numeric": "Numeric Ratios",
            "auto_ban": "Auto-Banned Industries",
            "composite": "Invesense Composite",
        }[self.value]
