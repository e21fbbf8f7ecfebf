"""Translation endpoint used by the admin editor for bios and descriptions."""

import logging

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from musiclt.api.dependencies import get_translation_client, require_admin
from musiclt.domain.ports import ITranslationClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/translate", tags=["Translation"])


class TranslateRequest(BaseModel):
    """Text to translate."""

    text: str = Field("", description="Source text, truncated to 700 characters")


class TranslateResponse(BaseModel):
    """Translation result."""

    translated: str = Field(..., description="Lithuanian text, empty on failure")
    error: str | None = Field(
        None, description="HTTP_<status> or FETCH_ERROR when the upstream call failed"
    )


# Hey future me - an upstream failure is a 502 WITH the error code in the body; the editor
# shows the code next to the field. Empty input is a plain 200 with an empty translation.
@router.post(
    "",
    response_model=TranslateResponse,
    responses={status.HTTP_502_BAD_GATEWAY: {"model": TranslateResponse}},
)
async def translate(
    body: TranslateRequest,
    _role: str = Depends(require_admin),
    client: ITranslationClient = Depends(get_translation_client),
) -> TranslateResponse | JSONResponse:
    """Translate text to Lithuanian."""
    result = await client.translate(body.text)
    if result.ok:
        return TranslateResponse(translated=result.text)
    if result.error is None:
        return TranslateResponse(translated="")

    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=TranslateResponse(translated="", error=result.error).model_dump(),
    )
