"""Display language endpoints."""

from fastapi import APIRouter

from raitha.schemas import Language, LanguageOption

router = APIRouter(prefix="/languages", tags=["languages"])


@router.get("", response_model=list[LanguageOption])
async def list_languages():
    """List the languages a conversation can be displayed and dictated in."""
    return [LanguageOption.from_language(language) for language in Language]
