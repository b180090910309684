"""Request/response contracts of the AI gateway."""

from __future__ import annotations

import math
from typing import Any

from pydantic import AliasChoices, Field, field_validator

from fieldflow.schemas.work_order import CamelModel, WorkOrderDraft

UNKNOWN = "unknown"


def _as_text(v: Any) -> Any:
    """Flatten list answers and stringify numbers; models do not always return strings."""
    if isinstance(v, list):
        return ", ".join(str(x) for x in v)
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return str(v)
    return v


class TranscriptionResult(CamelModel):
    customer_details: str = UNKNOWN
    job_description: str = UNKNOWN
    urgency: str = UNKNOWN
    location: str = UNKNOWN

    @field_validator("customer_details", "job_description", "urgency", "location", mode="before")
    @classmethod
    def _unknown_if_blank(cls, v: Any) -> Any:
        v = _as_text(v)
        if v is None or (isinstance(v, str) and not v.strip()):
            return UNKNOWN
        return v


class AnalysisResult(CamelModel):
    part_list: str
    job_duration_estimate: str
    urgency_level: str
    tools_needed: str
    man_hours_needed: str

    @field_validator("*", mode="before")
    @classmethod
    def _free_text(cls, v: Any) -> Any:
        return _as_text(v)


class InvoiceDraftResult(CamelModel):
    invoice_text: str = Field(validation_alias=AliasChoices("invoiceText", "invoice", "invoice_text"))
    total_amount: float

    @field_validator("total_amount")
    @classmethod
    def _finite_non_negative(cls, v: float) -> float:
        if not math.isfinite(v) or v < 0:
            raise ValueError("totalAmount must be a non-negative number")
        return v


class CoordinatorInput(CamelModel):
    job_status: str
    parts_order_status: str
    email_status: str
    payment_status: str
    deadline_status: str


class CoordinatorAdvice(CamelModel):
    action_taken: str
    reason: str


class AudioIntakeRequest(CamelModel):
    audio_data_uri: str


class IntakeResult(CamelModel):
    transcription: TranscriptionResult
    draft: WorkOrderDraft
