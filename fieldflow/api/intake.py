"""Voice intake — turn a recorded request into a pre-filled work order draft."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from fieldflow.agents.gateway import AIGateway
from fieldflow.dependencies import get_ai_gateway
from fieldflow.schemas import AudioIntakeRequest, IntakeResult
from fieldflow.services.audio import to_data_uri
from fieldflow.services.lifecycle import draft_from_transcription

router = APIRouter(prefix="/api/intake", tags=["intake"])


async def _intake(gateway: AIGateway, audio_data_uri: str) -> IntakeResult:
    result = await gateway.transcribe(audio_data_uri)
    return IntakeResult(transcription=result, draft=draft_from_transcription(result))


@router.post("/transcribe", response_model=IntakeResult)
async def transcribe_upload(
    file: UploadFile = File(...),
    gateway: AIGateway = Depends(get_ai_gateway),
):
    audio = await file.read()
    if not audio:
        raise HTTPException(400, "Audio file is empty")
    mime_type = file.content_type or "audio/mpeg"
    if not mime_type.startswith("audio/"):
        raise HTTPException(400, f"Expected an audio file, got {mime_type}")
    return await _intake(gateway, to_data_uri(audio, mime_type))


@router.post("/transcribe-uri", response_model=IntakeResult)
async def transcribe_data_uri(
    body: AudioIntakeRequest,
    gateway: AIGateway = Depends(get_ai_gateway),
):
    return await _intake(gateway, body.audio_data_uri)
