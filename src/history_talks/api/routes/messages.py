"""Chat endpoints: persona replies and speech synthesis."""

from typing import Annotated

from fastapi import APIRouter, HTTPException, Query, status
from fastapi.responses import JSONResponse

from history_talks.api.deps import ChatServiceDep
from history_talks.api.schemas import MessageCreate, MessageResponse, VoiceResponse
from history_talks.errors import ChatCompletionError, PersonaNotFoundError, VoiceUnavailableError
from history_talks.logging import get_logger

router = APIRouter(tags=["Chat"])
logger = get_logger(__name__)


@router.post(
    "/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message to a persona",
    description="Generates the persona's reply and, when possible, a spoken version of it.",
)
async def send_message(request: MessageCreate, chat: ChatServiceDep) -> MessageResponse:
    try:
        message = await chat.send_message(request.sub_id, request.user_message)
    except PersonaNotFoundError:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sub not found")
    except ChatCompletionError:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to send message",
        )
    return MessageResponse.model_validate(message)


@router.get(
    "/voice",
    response_model=VoiceResponse,
    summary="Speak a line in a figure's voice",
    responses={503: {"description": "No speech provider configured"}},
)
async def generate_voice(
    chat: ChatServiceDep,
    text: str | None = None,
    figure: str | None = None,
    sub_id: Annotated[int | None, Query(alias="subId")] = None,
) -> VoiceResponse | JSONResponse:
    if not chat.voiceover.available:
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "message": "Voice generation is not available - "
                "ELEVENLABS_API_KEY is not configured",
                "missingApiKey": True,
            },
        )
    if not text or not figure:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing required parameters: text and figure",
        )

    try:
        audio_url = await chat.generate_voice(text, figure, sub_id)
    except VoiceUnavailableError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))

    if not audio_url:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate voice response",
        )
    return VoiceResponse(audio_url=audio_url)
