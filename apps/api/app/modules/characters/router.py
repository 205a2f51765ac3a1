from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Request

from .schemas import Character, CharacterUpdateIn, CharacterUpdateOut
from .service import CharacterService

router = APIRouter(tags=["characters"])


def get_character_service(request: Request) -> CharacterService:
    return request.app.state.character_service


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


@router.get("/character/{key}", response_model=Character)
def api_get_character(
    request: Request,
    key: str = Path(..., min_length=1),
    service: CharacterService = Depends(get_character_service),
) -> Character:
    return service.get_character(key, request_id=_request_id(request))


@router.put("/character/{key}", response_model=CharacterUpdateOut)
def api_update_character(
    body: CharacterUpdateIn,
    request: Request,
    key: str = Path(..., min_length=1),
    service: CharacterService = Depends(get_character_service),
) -> CharacterUpdateOut:
    updated = service.update_character(key, body, request_id=_request_id(request))
    return CharacterUpdateOut(updated_cells=updated)
