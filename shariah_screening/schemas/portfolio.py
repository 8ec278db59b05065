"""Portfolio holdings and value-weighted methodology summaries."""

from typing import Dict, List

from pydantic import BaseModel, Field, field_validator

from .enums import Methodology
from .results import ScreeningBundle


class PortfolioHolding(BaseModel):
    """One position supplied by the user."""

    ticker: str = Field(..., min_length=1)
    quantity: float = Field(..., gt=0)
    price: float = Field(..., gt=0)

    @field_validator("ticker", mode="before")
    @classmethod
    def normalize_ticker(cls, v: str) -> str:
        return str(v).strip().upper()

    @property
    def value(self) -> float:
        return self.quantity * self.price


class MethodologySummary(BaseModel):
    """Portfolio value bucketed by compliance state for one methodology.

    The four weights always sum to ``total_value``.
    """

    compliant_weight: float = Field(0.0, ge=0)
    compliant_with_purification_weight: float = Field(0.0, ge=0)
    non_compliant_weight: float = Field(0.0, ge=0)
    no_data_weight: float = Field(0.0, ge=0)
    total_value: float = Field(0.0, ge=0)

    @property
    def weight_sum(self) -> float:
        return (
            self.compliant_weight
            + self.compliant_with_purification_weight
            + self.non_compliant_weight
            + self.no_data_weight
        )

    def percentages(self) -> Dict[str, float]:
        """Each bucket as a share (0-100) of the portfolio value."""
        if self.total_value <= 0:
            return {"compliant": 0.0, "compliant_with_purification": 0.0, "non_compliant": 0.0, "no_data": 0.0}
        return {
            "compliant": self.compliant_weight / self.total_value * 100,
            "compliant_with_purification": self.compliant_with_purification_weight / self.total_value * 100,
            "non_compliant": self.non_compliant_weight / self.total_value * 100,
            "no_data": self.no_data_weight / self.total_value * 100,
        }


class HoldingResult(BaseModel):
    holding: PortfolioHolding
    value: float
    bundle: ScreeningBundle
    buckets: Dict[Methodology, str] = Field(
        default_factory=dict, description="Bucket name per methodology (compliant, no_data, ...)"
    )


class PortfolioResult(BaseModel):
    summary: Dict[Methodology, MethodologySummary]
    holdings: List[HoldingResult]
    total_value: float
