"""API route handlers for Ciku."""
from typing import List

from log import get_logger

logger = get_logger("ciku.routes")

from fastapi import APIRouter, Depends, HTTPException, Request

from models import (
    MAX_CHARACTERS, MatchRequest, GenerateRequest, GenerateBatchRequest,
    TextAnalysis, GeneratedText, GeneratedSentence,
)
from auth import require_password, enforce_rate_limit
from matcher import analyze_text
from generator import SentenceGenerator

router = APIRouter()

MAX_TEXT_LEN = 2000


def get_generator(request: Request) -> SentenceGenerator:
    return request.app.state.generator


@router.post("/api/match", tags=["Vocabulary"], summary="Find which vocabulary words a text uses",
             response_model=TextAnalysis)
async def match_text(req: MatchRequest, _pw=Depends(require_password)):
    if len(req.text) > MAX_TEXT_LEN:
        raise HTTPException(400, f"Input too long (max {MAX_TEXT_LEN} characters)")
    if len(req.vocabulary) > MAX_CHARACTERS:
        raise HTTPException(400, f"Vocabulary too large (max {MAX_CHARACTERS} entries)")
    return analyze_text(req.text, req.vocabulary, strip=req.strip_punctuation)


@router.post("/api/comprehension/generate", tags=["Comprehension"],
             summary="Generate a practice sentence", response_model=GeneratedText)
async def generate_text(
    req: GenerateRequest,
    _pw=Depends(require_password),
    _rl=Depends(enforce_rate_limit),
    generator: SentenceGenerator = Depends(get_generator),
):
    try:
        return await generator.generate_text(req.characters, req.max_words)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.post("/api/comprehension/generate-batch", tags=["Comprehension"],
             summary="Generate several practice sentences", response_model=List[GeneratedSentence])
async def generate_batch(
    req: GenerateBatchRequest,
    _pw=Depends(require_password),
    _rl=Depends(enforce_rate_limit),
    generator: SentenceGenerator = Depends(get_generator),
):
    try:
        return await generator.generate_multiple_sentences(req.characters, req.count)
    except ValueError as e:
        raise HTTPException(400, str(e))


@router.get("/api/health", tags=["System"])
async def health(request: Request):
    generator: SentenceGenerator = request.app.state.generator
    llm = request.app.state.llm
    return {
        "status": "ok",
        "llm": {"reachable": await llm.check_connectivity(), "model": llm.model},
        "mock": generator.use_mock,
    }
