from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from ..errors import InvalidArgument
from ..index.tokenizer import tokenize
from ..model import Node, parse_timestamp, utcnow


logger = logging.getLogger(__name__)

MIN_KEYWORD_CHARS = 4
MIN_TAG_CHARS = 3
TAG_WEIGHT = 2


@dataclass(frozen=True)
class EmergingConcept:
    keyword: str
    recent_count: int
    past_count: int
    lift: float


def keyword_frequencies(nodes: Iterable[Node]) -> Counter:
    """Weighted keyword counts: content tokens (>= 4 chars) count 1, tags count 2."""
    freq: Counter = Counter()
    for n in nodes:
        for tok in tokenize(n.content, min_len=MIN_KEYWORD_CHARS):
            freq[tok] += 1
        for tag in n.tags:
            key = tag.lower()
            if len(key) >= MIN_TAG_CHARS:
                freq[key] += TAG_WEIGHT
    return freq


def find_emerging(
    nodes: Iterable[Node],
    window_days: float = 7,
    min_recent_count: int = 2,
    min_lift: float = 2.0,
    *,
    now: datetime | None = None,
    limit: int = 50,
) -> list[EmergingConcept]:
    """Keywords whose frequency in the last ``window_days`` outpaces the rest of the corpus.

    lift = (recent + 1) / (past + 1); the +1 keeps brand-new terms finite.
    """
    if window_days < 0:
        raise InvalidArgument(f"window_days must be >= 0, got {window_days}")

    cutoff = parse_timestamp(now or utcnow()) - timedelta(days=float(window_days))
    recent: list[Node] = []
    past: list[Node] = []
    for n in nodes:
        (recent if n.created_at >= cutoff else past).append(n)

    fr = keyword_frequencies(recent)
    fp = keyword_frequencies(past)

    out: list[EmergingConcept] = []
    for kw, count in fr.items():
        prev = fp.get(kw, 0)
        lift = (count + 1) / (prev + 1)
        if count >= min_recent_count and lift >= min_lift:
            out.append(EmergingConcept(keyword=kw, recent_count=count, past_count=prev, lift=lift))

    out.sort(key=lambda c: (-c.lift, -c.recent_count, c.keyword))
    logger.debug("Emerging: %d recent / %d past nodes, %d concepts", len(recent), len(past), len(out))
    return out[: max(0, int(limit))]
