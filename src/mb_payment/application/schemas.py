"""Pydantic schemas for the payment / disbursement collaborator callbacks."""

from pydantic import BaseModel, Field, model_validator

from src.mb_bet.application.schemas import BetResponse


class PaymentCallbackRequest(BaseModel):
    """Identify a bet by id or by the payment reference handed to the provider."""

    bet_id: str | None = None
    payment_reference: str | None = Field(None, max_length=128)
    reason: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_key(self) -> "PaymentCallbackRequest":
        if not self.bet_id and not self.payment_reference:
            raise ValueError("bet_id or payment_reference is required")
        return self


class PayoutReportRequest(BaseModel):
    success: bool
    reference: str | None = Field(None, max_length=128)


class RefundReportRequest(BaseModel):
    reference: str | None = Field(None, max_length=128)


class PendingPayoutListResponse(BaseModel):
    items: list[BetResponse]
    next_cursor: str | None
    has_more: bool
