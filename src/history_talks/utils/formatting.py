"""Human-readable formatting helpers."""

_UNITS = ["B", "KB", "MB", "GB", "TB", "PB"]


def format_bytes(size: int, decimals: int = 2) -> str:
    """Format a byte count with 1024-based units, e.g. 1536 -> '1.5 KB'."""
    if size <= 0:
        return "0 B"
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{round(value, max(0, decimals)):g} {_UNITS[unit]}"
