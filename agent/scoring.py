from typing import Optional

MAX_LATENCY_PENALTY = 40
LATENCY_PENALTY_DIVISOR = 5


def score(signal: int, latency_ms: Optional[float]) -> int:
    """Experience score 0-100 from signal percent and mean latency.

    Latency lowers the score by latency/5 points, capped at 40, so a full
    signal link never drops below 60 on latency alone. Without a latency
    measurement the score is the signal itself.
    """
    if signal <= 0:
        return 0
    if latency_ms is None:
        return min(int(signal), 100)
    penalty = min(latency_ms / LATENCY_PENALTY_DIVISOR, MAX_LATENCY_PENALTY)
    value = int(signal - penalty)
    return max(0, min(value, 100))
