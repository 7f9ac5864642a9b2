from __future__ import annotations
from dataclasses import dataclass
from typing import Literal, Optional, Tuple


@dataclass(frozen=True)
class SentimentConfig:
    method: Literal["remote", "keyword", "vader", "chain"] = "remote"
    # Remote scoring API
    api_url: Optional[str] = None
    payload_style: Literal["batch", "simple"] = "batch"
    timeout_seconds: float = 30.0
    # Ordered analyzer names tried by the chain
    chain: Tuple[str, ...] = ("remote", "keyword")
    # Thresholds:
    keyword_pos: float = 0.2
    keyword_neg: float = -0.2
    vader_pos: float = 0.05
    vader_neg: float = -0.05


@dataclass(frozen=True)
class WorkerConfig:
    poll_interval_seconds: float = 5.0
    batch_size: int = 5
