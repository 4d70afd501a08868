"""Practice sentence generation from a learner's vocabulary.

The model is shown an enumerated list of allowed words and asked for a short
sentence. Whatever comes back, the words it actually used are recomputed from
the text with the greedy matcher rather than trusted from the model's own
index list. When the model is unavailable or replies with garbage, a mock
sentence built directly from the vocabulary is returned instead.
"""
import time
from typing import List, Optional

import httpx

from log import get_logger

logger = get_logger("ciku.generator")

from matcher import extract_used_words, is_punctuation_or_space
from models import (
    REQUIRED_WORDS, MAX_CHARACTERS, MAX_WORDS, MAX_BATCH, DEFAULT_BATCH, MOCK_PINYIN,
    GeneratedText, GeneratedSentence,
)
from llm import OllamaClient, to_pinyin, parse_numbered_reply, parse_batch_reply


class GenerationError(Exception):
    """The model reply could not be turned into usable text."""


def build_vocabulary(characters: List[str]) -> List[str]:
    """User entries followed by the required grammar words, de-duplicated in order."""
    return list(dict.fromkeys(list(characters) + REQUIRED_WORDS))


def count_chinese_words(text: str) -> int:
    # Every non-punctuation character counts as one word
    return sum(1 for c in text if not is_punctuation_or_space(c))


def truncate_to_max_words(text: str, max_words: int) -> str:
    count = 0
    out = []
    for char in text:
        if not is_punctuation_or_space(char):
            if count >= max_words:
                break
            count += 1
        out.append(char)
    return "".join(out)


def _enumerate(vocab: List[str]) -> str:
    return "\n".join(f"{i}. {word}" for i, word in enumerate(vocab, start=1))


def _validate_characters(characters: List[str]):
    if not characters:
        raise ValueError("Characters array cannot be empty")
    if len(characters) > MAX_CHARACTERS:
        raise ValueError(f"Characters array exceeds maximum limit of {MAX_CHARACTERS}")


def _single_prompt(vocab: List[str], max_words: int) -> str:
    return f"""You are a Chinese teacher writing beginner reading practice.

ALLOWED WORDS (use nothing else):
{_enumerate(vocab)}

Write ONE short, natural, grammatical sentence using only the words above.
- At most {max_words} characters, not counting punctuation
- Do not invent new words by combining listed characters
- Punctuation is allowed
- Never output a bare list of words

Reply in exactly this format:
NUMBERS: [comma-separated indices of the words used, in order]
SENTENCE: [the sentence with punctuation]

Example with list 1.我 2.是 3.学生:
NUMBERS: 1,2,3
SENTENCE: 我是学生。"""


def _batch_prompt(vocab: List[str], count: int) -> str:
    return f"""You are a Chinese teacher writing beginner reading practice.

ALLOWED WORDS (use nothing else):
{_enumerate(vocab)}

Write EXACTLY {count} different short, natural, grammatical sentences using only the words above.
- Each at most {MAX_WORDS} characters, not counting punctuation
- Vary the words and patterns between sentences
- Never output a bare list of words

Reply with one line per sentence:
SENTENCE_1: [sentence]
SENTENCE_2: [sentence]
...
SENTENCE_{count}: [sentence]"""


class SentenceGenerator:
    """Generates practice sentences through an injected `OllamaClient`."""

    def __init__(self, llm: Optional[OllamaClient], use_mock: bool = False):
        self.llm = llm
        self.use_mock = use_mock or llm is None

    async def generate_text(self, characters: List[str], max_words: int = MAX_WORDS) -> GeneratedText:
        """Generate one sentence of at most `max_words` counted characters.

        Raises ValueError on invalid arguments. Model failures fall back to a
        mock sentence and are logged, never raised.
        """
        _validate_characters(characters)
        if max_words <= 0 or max_words > MAX_WORDS:
            raise ValueError(f"max_words must be between 1 and {MAX_WORDS}")

        if self.use_mock:
            logger.info("Using mock generator", extra={"component": "generator"})
            return self._mock_text(characters, max_words)

        vocab = build_vocabulary(characters)
        try:
            reply = await self._ask(_single_prompt(vocab, max_words), num_predict=512)
            return self._build_text(reply, vocab, max_words)
        except (httpx.HTTPError, GenerationError):
            logger.exception("Generation failed, falling back to mock", extra={"component": "generator"})
            return self._mock_text(characters, max_words)

    async def generate_multiple_sentences(self, characters: List[str],
                                          count: int = DEFAULT_BATCH) -> List[GeneratedSentence]:
        _validate_characters(characters)
        if count <= 0 or count > MAX_BATCH:
            raise ValueError(f"count must be between 1 and {MAX_BATCH}")

        if self.use_mock:
            logger.info("Using mock generator for batch", extra={"component": "generator", "count": count})
            return self._mock_sentences(characters, count)

        vocab = build_vocabulary(characters)
        try:
            reply = await self._ask(_batch_prompt(vocab, count), num_predict=4096)
            texts = parse_batch_reply(reply)
            if not texts:
                raise GenerationError("No sentences were generated")
        except (httpx.HTTPError, GenerationError):
            logger.exception("Batch generation failed, falling back to mock", extra={"component": "generator"})
            return self._mock_sentences(characters, count)

        if len(texts) < count:
            logger.warning(f"Generated {len(texts)} sentences, expected {count}",
                           extra={"component": "generator", "count": len(texts)})
        return [
            GeneratedSentence(
                chinese_text=text,
                pinyin=to_pinyin(text),
                used_characters=extract_used_words(text, vocab),
            )
            for text in texts
        ]

    async def _ask(self, prompt: str, num_predict: int) -> str:
        start = time.time()
        reply = await self.llm.chat(
            [{"role": "user", "content": prompt}], temperature=0.7, num_predict=num_predict,
        )
        logger.info("LLM reply received", extra={
            "component": "generator",
            "duration_ms": round((time.time() - start) * 1000),
            "model": self.llm.model,
        })
        if reply is None:
            raise GenerationError("LLM API error")
        return reply.strip()

    def _build_text(self, reply: str, vocab: List[str], max_words: int) -> GeneratedText:
        numbers, sentence = parse_numbered_reply(reply, len(vocab))
        if sentence:
            text = sentence
        elif numbers is not None:
            text = "".join(vocab[n - 1] for n in numbers)
        else:
            logger.warning("Unstructured reply, using it verbatim", extra={"component": "generator"})
            text = reply
        if not text:
            raise GenerationError("Generated text is empty")

        if count_chinese_words(text) > max_words:
            text = truncate_to_max_words(text, max_words)

        return GeneratedText(
            chinese_text=text,
            pinyin=to_pinyin(text),
            word_count=count_chinese_words(text),
            used_characters=extract_used_words(text, vocab),
        )

    def _mock_text(self, characters: List[str], max_words: int) -> GeneratedText:
        unique = list(dict.fromkeys(characters))
        selected = unique[:min(max_words, len(unique))]
        return GeneratedText(
            chinese_text="".join(selected) + "。",
            pinyin=MOCK_PINYIN,
            word_count=len(selected),
            used_characters=selected,
        )

    def _mock_sentences(self, characters: List[str], count: int) -> List[GeneratedSentence]:
        unique = list(dict.fromkeys(characters))
        sentences = []
        for i in range(count):
            start = (i * 5) % len(unique)
            selected = unique[start:start + min(10, len(unique) - start)]
            sentences.append(GeneratedSentence(
                chinese_text="".join(selected) + "。",
                pinyin=MOCK_PINYIN,
                used_characters=selected,
            ))
        return sentences
