"""Pricing schemas."""

from datetime import date, datetime
from typing import Optional
from uuid import UUID

from pydantic import Field, model_validator

from app.schemas.base import BaseSchema, IDMixin, PartialUpdate, TimestampMixin
from app.models.enums import BookingCondition, OperationalCostType, PriceType


class PropertyPricingUpdate(PartialUpdate):
    """Upsert a property's pricing settings."""

    not_nullable = (
        "currency", "display_on_website", "retro_commission", "net_owner_commission",
        "public_price_commission", "b2b2c_partner_commission", "public_taxes", "client_fees",
    )

    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    display_on_website: Optional[bool] = None
    retro_commission: Optional[bool] = None
    security_deposit: Optional[float] = Field(None, ge=0)
    payment_schedule: Optional[str] = Field(None, pattern=r"^\d+\s*-\s*\d+\s*-\s*\d+$")
    min_owner_accepted_price: Optional[float] = Field(None, ge=0)
    min_lc_accepted_price: Optional[float] = Field(None, ge=0)
    public_minimum_price: Optional[float] = Field(None, ge=0)
    net_owner_commission: Optional[float] = Field(None, ge=0, le=100)
    public_price_commission: Optional[float] = Field(None, ge=0, le=100)
    b2b2c_partner_commission: Optional[float] = Field(None, ge=0, le=100)
    public_taxes: Optional[float] = Field(None, ge=0, le=100)
    client_fees: Optional[float] = Field(None, ge=0, le=100)


class PropertyPricingResponse(BaseSchema, IDMixin, TimestampMixin):
    property_id: UUID
    currency: str
    display_on_website: bool
    retro_commission: bool
    last_pricing_update: Optional[datetime] = None
    security_deposit: Optional[float] = None
    payment_schedule: Optional[str] = None
    min_owner_accepted_price: Optional[float] = None
    min_lc_accepted_price: Optional[float] = None
    public_minimum_price: Optional[float] = None
    net_owner_commission: float
    public_price_commission: float
    b2b2c_partner_commission: float
    public_taxes: float
    client_fees: float


class PriceRangeCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    start_date: date
    end_date: date
    owner_nightly_rate: Optional[float] = Field(None, gt=0)
    owner_weekly_rate: Optional[float] = Field(None, gt=0)
    commission_rate: float = Field(25.0, ge=0, lt=100)
    is_validated: bool = False
    minimum_stay: Optional[int] = Field(None, ge=1)

    @model_validator(mode="after")
    def validate_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class PriceRangeUpdate(PartialUpdate):
    not_nullable = ("name", "start_date", "end_date", "commission_rate", "is_validated")

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    owner_nightly_rate: Optional[float] = Field(None, gt=0)
    owner_weekly_rate: Optional[float] = Field(None, gt=0)
    commission_rate: Optional[float] = Field(None, ge=0, lt=100)
    is_validated: Optional[bool] = None
    minimum_stay: Optional[int] = Field(None, ge=1)


class PriceRangeResponse(BaseSchema, IDMixin, TimestampMixin):
    property_id: UUID
    name: str
    start_date: date
    end_date: date
    nightly_rate: Optional[float] = None
    weekly_rate: Optional[float] = None
    monthly_rate: Optional[float] = None
    owner_nightly_rate: Optional[float] = None
    owner_weekly_rate: Optional[float] = None
    commission_rate: float
    public_nightly_rate: Optional[float] = None
    public_weekly_rate: Optional[float] = None
    is_validated: bool
    minimum_stay: Optional[int] = None


class MinimumStayRuleCreate(BaseSchema):
    booking_condition: BookingCondition
    minimum_nights: int = Field(..., ge=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def validate_dates(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class MinimumStayRuleUpdate(PartialUpdate):
    not_nullable = ("booking_condition", "minimum_nights")

    booking_condition: Optional[BookingCondition] = None
    minimum_nights: Optional[int] = Field(None, ge=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class MinimumStayRuleResponse(BaseSchema, IDMixin, TimestampMixin):
    property_id: UUID
    booking_condition: BookingCondition
    minimum_nights: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class OperationalCostCreate(BaseSchema):
    cost_type: OperationalCostType
    price_type: PriceType
    estimated_price: Optional[float] = Field(None, ge=0)
    public_price: Optional[float] = Field(None, ge=0)
    paid_by: Optional[str] = Field(None, max_length=100)
    comment: Optional[str] = None


class OperationalCostUpdate(PartialUpdate):
    not_nullable = ("cost_type", "price_type")

    cost_type: Optional[OperationalCostType] = None
    price_type: Optional[PriceType] = None
    estimated_price: Optional[float] = Field(None, ge=0)
    public_price: Optional[float] = Field(None, ge=0)
    paid_by: Optional[str] = Field(None, max_length=100)
    comment: Optional[str] = None


class OperationalCostResponse(BaseSchema, IDMixin, TimestampMixin):
    property_id: UUID
    cost_type: OperationalCostType
    price_type: PriceType
    estimated_price: Optional[float] = None
    public_price: Optional[float] = None
    paid_by: Optional[str] = None
    comment: Optional[str] = None


class PricingOverview(BaseSchema):
    """Everything priced for one property."""

    pricing: Optional[PropertyPricingResponse] = None
    price_ranges: list[PriceRangeResponse] = []
    minimum_stay_rules: list[MinimumStayRuleResponse] = []
    operational_costs: list[OperationalCostResponse] = []


class MigrationResult(BaseSchema):
    migrated: int


# --- Imports ---

class PriceRangeImportRow(BaseSchema):
    property_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    start_date: date
    end_date: date
    owner_nightly_rate: Optional[float] = Field(None, gt=0)
    owner_weekly_rate: Optional[float] = Field(None, gt=0)
    commission_rate: float = Field(25.0, ge=0, lt=100)
    is_validated: bool = False

    @model_validator(mode="after")
    def validate_dates(self):
        if self.end_date <= self.start_date:
            raise ValueError("End date must be after start date")
        return self


class PriceRangeImportRequest(BaseSchema):
    rows: list[PriceRangeImportRow] = Field(..., min_length=1)
    skip_conflicts: bool = True
    update_existing: bool = False


class OperationalCostImportRow(OperationalCostCreate):
    property_id: UUID


class OperationalCostImportRequest(BaseSchema):
    rows: list[OperationalCostImportRow] = Field(..., min_length=1)


class MinimumStayRuleImportRow(MinimumStayRuleCreate):
    property_id: UUID


class MinimumStayRuleImportRequest(BaseSchema):
    rows: list[MinimumStayRuleImportRow] = Field(..., min_length=1)


class PricingImportResponse(BaseSchema):
    success: bool
    created: int = 0
    updated: int = 0
    skipped: int = 0
    errors: list[str] = []
    summary: str
