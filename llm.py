"""LLM access (Ollama), reply parsing, and pinyin."""
import os
import re as _re
from typing import Optional, List, Tuple

from log import get_logger

logger = get_logger("ciku.llm")

import httpx
from pypinyin import pinyin, Style as PinyinStyle

# --- Config ---
OLLAMA_URL = os.environ.get("CIKU_OLLAMA_URL", "http://localhost:11434")
OLLAMA_MODEL = os.environ.get("CIKU_OLLAMA_MODEL", "qwen2.5:14b-instruct-q3_K_M")
LLM_TIMEOUT = float(os.environ.get("CIKU_LLM_TIMEOUT", "120"))


class OllamaClient:
    """Handle on an Ollama server. Create once per process and close on shutdown."""

    def __init__(self, base_url: str = OLLAMA_URL, model: str = OLLAMA_MODEL,
                 timeout: float = LLM_TIMEOUT, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.model = model
        self._client = httpx.AsyncClient(base_url=self.base_url, timeout=timeout, transport=transport)

    async def chat(self, messages: list, temperature: float = 0.7,
                   num_predict: int = 2048) -> Optional[str]:
        """Call the chat API and return the content string, or None on a non-200 reply."""
        resp = await self._client.post(
            "/api/chat",
            json={
                "model": self.model,
                "messages": messages,
                "stream": False,
                "options": {"temperature": temperature, "num_predict": num_predict},
            },
        )
        if resp.status_code != 200:
            logger.warning("LLM returned an error status", extra={
                "component": "ollama", "status_code": resp.status_code, "model": self.model,
            })
            return None
        try:
            body = resp.json()
        except ValueError:
            logger.warning("LLM returned a non-JSON body", extra={"component": "ollama", "model": self.model})
            return None
        message = body.get("message") if isinstance(body, dict) else None
        if not isinstance(message, dict) or not isinstance(message.get("content", ""), str):
            logger.warning("LLM reply has no message content", extra={"component": "ollama", "model": self.model})
            return None
        return message.get("content", "")

    async def check_connectivity(self) -> bool:
        try:
            resp = await self._client.get("/api/tags", timeout=10)
            return resp.status_code == 200
        except httpx.HTTPError:
            logger.warning("Ollama not reachable", extra={"component": "ollama"})
            return False

    async def aclose(self):
        await self._client.aclose()


# --- Pronunciation ---

def to_pinyin(text: str) -> str:
    result = pinyin(text, style=PinyinStyle.TONE, heteronym=False)
    return " ".join(p[0] for p in result)


# --- Reply parsing ---

_NUMBERS_RE = _re.compile(r"NUMBERS:\s*\[?([0-9,\s]+)\]?", _re.IGNORECASE)
_SENTENCE_RE = _re.compile(r"SENTENCE:\s*(.+)", _re.IGNORECASE)
_BATCH_RE = _re.compile(r"SENTENCE_\d+:\s*(.+?)(?=SENTENCE_\d+:|$)", _re.DOTALL)


def parse_numbered_reply(text: str, vocab_size: int) -> Tuple[Optional[List[int]], Optional[str]]:
    """Pull the NUMBERS indices and the SENTENCE line out of a single-sentence reply.

    Indices outside 1..vocab_size are dropped. Either part is None when the
    reply does not contain it.
    """
    numbers = None
    numbers_match = _NUMBERS_RE.search(text)
    if numbers_match and numbers_match.group(1).strip():
        numbers = []
        for part in numbers_match.group(1).split(","):
            part = part.strip()
            if part.isdigit() and 0 < int(part) <= vocab_size:
                numbers.append(int(part))

    sentence = None
    sentence_match = _SENTENCE_RE.search(text)
    if sentence_match and sentence_match.group(1).strip():
        sentence = sentence_match.group(1).strip()
    return numbers, sentence


def parse_batch_reply(text: str) -> List[str]:
    """Return the non-empty SENTENCE_n bodies of a batch reply, in order."""
    return [m.strip() for m in _BATCH_RE.findall(text) if m.strip()]
