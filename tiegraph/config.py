# ---------------------------------------------------------------------
# Global configuration defaults. Override programmatically before
# importing the builders, or pass keyword arguments per call.
# ---------------------------------------------------------------------

# Similarity measure used when none is given; see metrics.Measure
MEASURE: str = "cosine"

# Saturation base for conditional_probability: 1 - (1/ALPHA) ** value
ALPHA: float = 2.0

# Lookback window (max order distance) for windowed ties
WINDOW_SIZE: int = 1

# Tie orientation; see ties.Direction
DIRECTION: str = "directed.up"

# Count a tie between two authors at most once per context
COUNT_ONCE: bool = False
FIRST_AUTHOR_COUNT_ONCE: bool = True

# Edges with a weight below this are dropped (None keeps everything)
MIN_SIMILARITY: float | None = None

# Denominators at or below EPS are treated as zero
EPS: float = 1e-12

# tqdm progress bars for per-lag / per-group loops
SHOW_PROGRESS: bool = False
