"""Pydantic schemas and constants for Ciku."""
from typing import Optional, List
from pydantic import BaseModel

# --- Constants ---

# Grammar words always offered to the model alongside the learner's vocabulary
REQUIRED_WORDS = ["是", "吗", "的", "呢", "也", "这", "去", "有"]

MAX_CHARACTERS = 300
MAX_WORDS = 40
MAX_BATCH = 50
DEFAULT_BATCH = 30

MOCK_PINYIN = "[Mock pinyin - API not available]"


# --- Matcher results ---

class Segment(BaseModel):
    text: str                    # characters consumed by one cursor advance
    word: Optional[str] = None   # vocabulary entry that matched, None on a miss


class MatchResult(BaseModel):
    matched: List[str] = []
    unmatched: List[str] = []
    segments: List[Segment] = []


class TextAnalysis(MatchResult):
    uncovered: List[str] = []


# --- Generator results ---

class GeneratedText(BaseModel):
    chinese_text: str
    pinyin: str
    word_count: int
    used_characters: List[str]


class GeneratedSentence(BaseModel):
    chinese_text: str
    pinyin: str
    used_characters: List[str]


# --- Request bodies ---

class MatchRequest(BaseModel):
    text: str
    vocabulary: List[str]
    strip_punctuation: bool = True


class GenerateRequest(BaseModel):
    characters: List[str]
    max_words: int = MAX_WORDS


class GenerateBatchRequest(BaseModel):
    characters: List[str]
    count: int = DEFAULT_BATCH
