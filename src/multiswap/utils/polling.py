"""Polling helpers."""


def backoff_delay(attempt: int, base: float = 1.0, factor: float = 1.5, cap: float = 5.0) -> float:
    """Delay before poll ``attempt`` (0-based): ``min(base * factor**attempt, cap)``.

    With the defaults: 1.0, 1.5, 2.25, 3.375, 5.0, 5.0...
    """
    if attempt < 0:
        raise ValueError("attempt must be >= 0")
    return min(base * (factor ** attempt), cap)
