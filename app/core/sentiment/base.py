from __future__ import annotations
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from app.messages.sentiment_messages import INVALID_LABEL
from app.utils.exceptions import AnalyzerError


class SentimentLabel(str, Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    NEUTRAL = "NEUTRAL"


_LABEL_CLASS = {
    SentimentLabel.POSITIVE: 1,
    SentimentLabel.NEGATIVE: -1,
    SentimentLabel.NEUTRAL: 0,
}


@dataclass(frozen=True)
class AnalyzerOutput:
    label: SentimentLabel
    score: float  # always within [-1, 1]
    negative_summary: Optional[str] = None

    @property
    def sentiment_class(self) -> int:
        return label_to_class(self.label)


class SentimentAnalyzer(ABC):
    """
    Scores one piece of text. Implementations must:
      - return a label from SentimentLabel and a score clamped to [-1, 1]
      - raise AnalyzerError on any backend failure
      - never retry; retry policy belongs to the caller
    """

    @abstractmethod
    async def analyze(self, text: str) -> AnalyzerOutput: ...

    async def aclose(self) -> None:
        """Release any network resources. No-op by default."""
        return None


def clamp_score(value: Any) -> float:
    """Coerce to float in [-1, 1]; anything non-numeric becomes 0.0."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    v = float(value)
    if not math.isfinite(v):
        return 0.0
    return max(-1.0, min(1.0, v))


def normalize_label(raw: Any) -> SentimentLabel:
    if isinstance(raw, SentimentLabel):
        return raw
    if isinstance(raw, str):
        try:
            return SentimentLabel(raw.strip().upper())
        except ValueError:
            pass
    raise AnalyzerError(INVALID_LABEL)


def label_to_class(label: SentimentLabel | str) -> int:
    try:
        return _LABEL_CLASS[SentimentLabel(label)]
    except ValueError:
        return 0
