from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv


load_dotenv()


@dataclass(frozen=True)
class Settings:
    # Embeddings. Keep one dimension per comparison set.
    dimension: int = int(os.getenv("NOTEGRAPH_DIMENSION", "256"))
    tag_weight: float = float(os.getenv("NOTEGRAPH_TAG_WEIGHT", "2.0"))

    # Neighbor search: "brute" (exact) or "hyperplane" (approximate).
    neighbor_search: str = os.getenv("NOTEGRAPH_NEIGHBOR_SEARCH", "brute")
    ann_planes: int = int(os.getenv("NOTEGRAPH_ANN_PLANES", "8"))
    ann_seed: int = int(os.getenv("NOTEGRAPH_ANN_SEED", "0"))

    # Clustering
    cluster_threshold: float = float(os.getenv("NOTEGRAPH_CLUSTER_THRESHOLD", "0.55"))
    cluster_limit: int = int(os.getenv("NOTEGRAPH_CLUSTER_LIMIT", "500"))

    # Emerging concepts
    emerging_window_days: int = int(os.getenv("NOTEGRAPH_EMERGING_WINDOW_DAYS", "7"))
    emerging_min_recent: int = int(os.getenv("NOTEGRAPH_EMERGING_MIN_RECENT", "2"))
    emerging_min_lift: float = float(os.getenv("NOTEGRAPH_EMERGING_MIN_LIFT", "2.0"))

    log_level: str = os.getenv("NOTEGRAPH_LOG_LEVEL", "WARNING")
