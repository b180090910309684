"""AI gateway: transcription, job analysis, invoice drafting, coordination.

Each call is bounded by a timeout and returns a schema-checked result or
raises GatewayError. Callers mutate work orders only after a result is
returned, so a failed call never leaves partial data behind.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Sequence, TypeVar

from fieldflow.agents.llm_provider import LLMProvider, get_llm_provider
from fieldflow.agents.prompts import (
    TRANSCRIPT_EXTRACTION_PROMPT, JOB_ANALYSIS_PROMPT, INVOICE_DRAFT_PROMPT, COORDINATOR_PROMPT,
)
from fieldflow.agents.tools import validate_response, format_part_lines
from fieldflow.config import Settings, get_settings
from fieldflow.errors import GatewayError, GatewayTimeoutError
from fieldflow.schemas.gateway import (
    TranscriptionResult, AnalysisResult, InvoiceDraftResult, CoordinatorInput, CoordinatorAdvice,
)
from fieldflow.schemas.work_order import CustomerInfo, PartCost
from fieldflow.services.audio import parse_data_uri

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT = 30.0


class AIGateway:
    def __init__(self, provider: LLMProvider, timeout: float = DEFAULT_TIMEOUT):
        self.provider = provider
        self.timeout = timeout

    async def _call(self, operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except asyncio.TimeoutError as e:
            logger.error(f"{operation} timed out after {self.timeout}s")
            raise GatewayTimeoutError(f"{operation} timed out after {self.timeout:g}s") from e
        except GatewayError:
            raise
        except Exception as e:
            logger.error(f"{operation} failed: {e}")
            raise GatewayError(f"{operation} failed: {e}") from e

    async def transcribe(self, audio_data_uri: str) -> TranscriptionResult:
        """Recorded request -> customer details, job description, urgency, location.

        Fields the model cannot determine come back as ``"unknown"``.
        """
        mime_type, audio = parse_data_uri(audio_data_uri)
        transcript = await self._call("Transcription", self.provider.transcribe(audio, mime_type))
        if not transcript or not transcript.strip():
            logger.info("Transcription was empty; every field is unknown")
            return TranscriptionResult()
        response = await self._call(
            "Transcript extraction",
            self.provider.chat(TRANSCRIPT_EXTRACTION_PROMPT.format(transcript=transcript.strip())),
        )
        return validate_response(TranscriptionResult, response)

    async def analyze(
        self, job_description: str, customer_details: str, urgency: str, location: str,
    ) -> AnalysisResult:
        prompt = JOB_ANALYSIS_PROMPT.format(
            job_description=job_description,
            customer_details=customer_details,
            urgency=urgency,
            location=location,
        )
        response = await self._call("Job analysis", self.provider.chat(prompt))
        return validate_response(AnalysisResult, response)

    async def draft_invoice(
        self,
        customer_info: CustomerInfo,
        job_summary: str,
        part_costs: Sequence[PartCost],
        labor_estimate: float,
        tax_rate: float,
    ) -> InvoiceDraftResult:
        prompt = INVOICE_DRAFT_PROMPT.format(
            name=customer_info.name,
            email=customer_info.email,
            phone=customer_info.phone,
            address=customer_info.address,
            job_summary=job_summary,
            part_lines=format_part_lines(part_costs),
            labor_estimate=labor_estimate,
            tax_rate=tax_rate,
        )
        response = await self._call("Invoice drafting", self.provider.chat(prompt))
        return validate_response(InvoiceDraftResult, response)

    async def coordinate(self, statuses: CoordinatorInput) -> CoordinatorAdvice:
        prompt = COORDINATOR_PROMPT.format(
            job_status=statuses.job_status,
            parts_order_status=statuses.parts_order_status,
            email_status=statuses.email_status,
            payment_status=statuses.payment_status,
            deadline_status=statuses.deadline_status,
        )
        response = await self._call("Coordination", self.provider.chat(prompt))
        return validate_response(CoordinatorAdvice, response)


def get_gateway(settings: Settings | None = None) -> AIGateway:
    """Build a gateway from configuration. Raises RuntimeError when no provider is configured."""
    settings = settings or get_settings()
    return AIGateway(get_llm_provider(settings), timeout=settings.ai.timeout_seconds)
