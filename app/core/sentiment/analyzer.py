# app/core/sentiment/analyzer.py
from __future__ import annotations
import asyncio
import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import aiohttp

from app.core.sentiment.base import (
    AnalyzerOutput,
    SentimentAnalyzer,
    SentimentLabel,
    clamp_score,
    normalize_label,
)
from app.core.sentiment.config import SentimentConfig
from app.messages.sentiment_messages import EMPTY_TEXT, NO_SENTIMENT_RESULTS
from app.utils.exceptions import AnalyzerError

logger = logging.getLogger(__name__)

NEUTRAL_DEFAULT = AnalyzerOutput(label=SentimentLabel.NEUTRAL, score=0.0)


# ----------------------------
# Remote scoring API
# ----------------------------


class RemoteSentimentAnalyzer(SentimentAnalyzer):
    """
    POSTs review text to the external scoring service.

    Request:  {"reviews": [text]}   (payload_style="batch")
              {"text": text}        (payload_style="simple")
    Response: {"positive_reviews": [{label, confidence}], "negative_reviews": [...],
               "negative_summary": str | null}
              or a flat {"label": ..., "score": ...}
    """

    def __init__(self, cfg: SentimentConfig):
        if not cfg.api_url:
            raise ValueError("AI_API is not configured in the environment")
        self.cfg = cfg
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.cfg.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    def _payload(self, text: str) -> Dict[str, Any]:
        if self.cfg.payload_style == "simple":
            return {"text": text}
        return {"reviews": [text]}

    async def analyze(self, text: str) -> AnalyzerOutput:
        if not text or not text.strip():
            raise AnalyzerError(EMPTY_TEXT)

        logger.info(
            f"🧠 Calling sentiment API {self.cfg.api_url} (length={len(text)})"
        )
        session = await self._get_session()
        try:
            async with session.post(
                self.cfg.api_url, json=self._payload(text)
            ) as response:
                body = await response.text()
                if not 200 <= response.status < 300:
                    raise AnalyzerError(
                        f"Sentiment API error: {response.status} {response.reason} - {body[:500]}"
                    )
        except aiohttp.ClientError as e:
            raise AnalyzerError(f"Sentiment API network error: {e}")
        except asyncio.TimeoutError:
            raise AnalyzerError("Sentiment API request timed out")

        try:
            data = json.loads(body)
        except ValueError:
            raise AnalyzerError("Sentiment API returned a malformed body")

        logger.debug(f"🧠 Sentiment API response: {data}")
        return self.parse_response(data)

    @staticmethod
    def parse_response(data: Any) -> AnalyzerOutput:
        if not isinstance(data, dict):
            raise AnalyzerError("Sentiment API returned a malformed body")

        # Rich shape: first positive item wins, then first negative
        if "positive_reviews" in data or "negative_reviews" in data:
            summary = data.get("negative_summary") or None
            for key in ("positive_reviews", "negative_reviews"):
                items = data.get(key)
                if isinstance(items, list) and items:
                    item = items[0]
                    if not isinstance(item, dict):
                        raise AnalyzerError("Sentiment API returned a malformed body")
                    return AnalyzerOutput(
                        label=normalize_label(item.get("label")),
                        score=clamp_score(item.get("confidence")),
                        negative_summary=summary,
                    )
            raise AnalyzerError(NO_SENTIMENT_RESULTS)

        # Flat shape
        if "label" in data:
            return AnalyzerOutput(
                label=normalize_label(data.get("label")),
                score=clamp_score(data.get("score")),
                negative_summary=data.get("negative_summary") or None,
            )

        raise AnalyzerError(NO_SENTIMENT_RESULTS)

    async def aclose(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()


# ----------------------------
# Keyword (offline / tests)
# ----------------------------

POSITIVE_WORDS = frozenset(
    {
        "amazing", "awesome", "beautiful", "best", "enjoyed", "excellent",
        "fantastic", "fun", "good", "great", "happy", "love", "loved",
        "perfect", "recommend", "wonderful",
    }
)
NEGATIVE_WORDS = frozenset(
    {
        "awful", "bad", "boring", "disappointed", "disappointing", "hate",
        "hated", "horrible", "poor", "rude", "terrible", "waste", "worst",
    }
)

_WORD_RE = re.compile(r"[a-z']+")


class KeywordSentimentAnalyzer(SentimentAnalyzer):
    """Deterministic score from keyword hits: (pos - neg) / (pos + neg)."""

    def __init__(self, cfg: SentimentConfig):
        self.cfg = cfg

    def score_text(self, text: str) -> float:
        words = _WORD_RE.findall((text or "").lower())
        pos = sum(1 for w in words if w in POSITIVE_WORDS)
        neg = sum(1 for w in words if w in NEGATIVE_WORDS)
        if pos + neg == 0:
            return 0.0
        return clamp_score((pos - neg) / (pos + neg))

    async def analyze(self, text: str) -> AnalyzerOutput:
        score = self.score_text(text)
        if score >= self.cfg.keyword_pos:
            return AnalyzerOutput(label=SentimentLabel.POSITIVE, score=score)
        if score <= self.cfg.keyword_neg:
            return AnalyzerOutput(label=SentimentLabel.NEGATIVE, score=score)
        return AnalyzerOutput(label=SentimentLabel.NEUTRAL, score=score)


# ----------------------------
# VADER
# ----------------------------


class VaderSentimentAnalyzer(SentimentAnalyzer):
    def __init__(self, cfg: SentimentConfig):
        self.cfg = cfg
        self._sia = None  # lazy

    def _ensure_sia(self):
        if self._sia is not None:
            return
        import nltk

        try:
            nltk.data.find("sentiment/vader_lexicon.zip")
        except LookupError:
            nltk.download("vader_lexicon", quiet=True)
        from nltk.sentiment import SentimentIntensityAnalyzer

        self._sia = SentimentIntensityAnalyzer()

    def _compound(self, text: str) -> float:
        self._ensure_sia()
        return self._sia.polarity_scores(text or "")["compound"]

    async def analyze(self, text: str) -> AnalyzerOutput:
        # lexicon download and scoring are blocking; keep them off the event loop
        try:
            compound = await asyncio.to_thread(self._compound, text)
        except (LookupError, OSError) as e:
            raise AnalyzerError(f"VADER unavailable: {e}")

        score = clamp_score(compound)
        if score > self.cfg.vader_pos:
            return AnalyzerOutput(label=SentimentLabel.POSITIVE, score=score)
        if score < self.cfg.vader_neg:
            return AnalyzerOutput(label=SentimentLabel.NEGATIVE, score=score)
        return AnalyzerOutput(label=SentimentLabel.NEUTRAL, score=score)


# ----------------------------
# Chain with fallbacks
# ----------------------------


class ChainedSentimentAnalyzer(SentimentAnalyzer):
    """
    Tries each named analyzer in order and returns the first success.
    Never raises: if every analyzer fails the result is NEUTRAL 0.0.
    """

    def __init__(self, analyzers: Sequence[Tuple[str, SentimentAnalyzer]]):
        if not analyzers:
            raise ValueError("ChainedSentimentAnalyzer needs at least one analyzer")
        self.analyzers: List[Tuple[str, SentimentAnalyzer]] = list(analyzers)

    async def analyze(self, text: str) -> AnalyzerOutput:
        for name, analyzer in self.analyzers:
            try:
                result = await analyzer.analyze(text)
                logger.info(f"🔗 Sentiment chain: '{name}' succeeded")
                return result
            except AnalyzerError as e:
                logger.warning(f"🔗 Sentiment chain: '{name}' failed - {e}")
        logger.warning("🔗 Sentiment chain: all analyzers failed, using neutral")
        return NEUTRAL_DEFAULT

    async def aclose(self) -> None:
        for _, analyzer in self.analyzers:
            await analyzer.aclose()


# ----------------------------
# Factory with caching
# ----------------------------

_analyzer_cache: Dict[SentimentConfig, SentimentAnalyzer] = {}


def _build(method: str, cfg: SentimentConfig) -> SentimentAnalyzer:
    m = method.lower()
    if m == "remote":
        return RemoteSentimentAnalyzer(cfg)
    if m == "keyword":
        return KeywordSentimentAnalyzer(cfg)
    if m == "vader":
        return VaderSentimentAnalyzer(cfg)
    if m == "chain":
        links = [n.strip().lower() for n in cfg.chain if n.strip()]
        if "chain" in links:
            raise ValueError("A sentiment chain cannot contain 'chain'")
        return ChainedSentimentAnalyzer([(n, _build(n, cfg)) for n in links])
    raise ValueError(f"Unsupported sentiment method: {method}")


def analyzer_for(method_or_cfg: Union[str, SentimentConfig]) -> SentimentAnalyzer:
    if isinstance(method_or_cfg, str):
        cfg = SentimentConfig(method=method_or_cfg.lower())
    else:
        cfg = method_or_cfg

    if cfg in _analyzer_cache:
        return _analyzer_cache[cfg]

    inst = _build(cfg.method, cfg)
    _analyzer_cache[cfg] = inst
    return inst
