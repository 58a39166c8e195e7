from __future__ import annotations

from ..models.generation_result import GenerationResult

"""SUMMARY line rendering.

Format::

    SUMMARY documents={total} generated={n} skipped={n} failed={n} fallbacks={n} items={n} elapsed_sec={s}
"""

__all__ = [
    "format_elapsed",
    "render_summary_line",
]


def format_elapsed(seconds: float) -> str:
    """Plain decimal without scientific notation; integral values print as ints."""
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(total_documents: int, result: GenerationResult) -> str:
    """Render the SUMMARY line for one run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2025, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2025, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> result = GenerationResult(
        ...     generated=3, skipped=0, failed=0, fallbacks=1, items=12,
        ...     start_time=start, end_time=end, elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(3, result)
        'SUMMARY documents=3 generated=3 skipped=0 failed=0 fallbacks=1 items=12 elapsed_sec=2'
    """
    return (
        f"SUMMARY documents={total_documents} "
        f"generated={result.generated} "
        f"skipped={result.skipped} "
        f"failed={result.failed} "
        f"fallbacks={result.fallbacks} "
        f"items={result.items} "
        f"elapsed_sec={format_elapsed(result.elapsed_seconds)}"
    )
