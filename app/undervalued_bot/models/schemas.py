from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ScreenerOptions(BaseModel):
    """Company-screener query filters. Unset fields are left to the defaults."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    market_cap_lower_than: float | None = Field(None, alias="marketCapLowerThan")
    price_lower_than: float | None = Field(None, alias="priceLowerThan")
    average_volume_more_than: float | None = Field(None, alias="averageVolumeMoreThan")
    exchange: str | None = None
    is_actively_trading: bool | None = Field(None, alias="isActivelyTrading")
    is_etf: bool | None = Field(None, alias="isEtf")
    is_fund: bool | None = Field(None, alias="isFund")
    limit: int | None = None

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class RawCandidate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    symbol: str
    company_name: str = Field("", alias="companyName")
    price: float
    is_etf: bool | None = Field(None, alias="isEtf")
    is_fund: bool | None = Field(None, alias="isFund")


class AnalystEstimate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str
    revenue_avg: float = Field(alias="revenueAvg")
    ebitda_avg: float = Field(alias="ebitdaAvg")
    net_income_avg: float = Field(alias="netIncomeAvg")
    sga_expense_avg: float = Field(alias="sgaExpenseAvg")
    eps_avg: float = Field(alias="epsAvg")
    num_analysts_revenue: int | None = Field(None, alias="numAnalystsRevenue")
    num_analysts_eps: int = Field(alias="numAnalystsEps")


class KeyMetrics(BaseModel):
    pe: Any = None
    pb: Any = None
    debt_to_equity: Any = None


class StockInsights(BaseModel):
    model_config = ConfigDict(frozen=True)

    period: str
    eps: float
    ebitda_margin: float
    net_margin: float
    sga_to_revenue_ratio: float
    analyst_count: int
    summary: str


class Stock(StockInsights):
    symbol: str
    company_name: str
    price: float
    pe: float
    pb: float
    target_price: float | None = None
    rsi: float
    debt_to_equity: float


class ScoredStock(BaseModel):
    symbol: str
    score: float
    explanation: str
