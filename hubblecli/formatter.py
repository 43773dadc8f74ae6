"""Human readable formatting of counters and durations."""

_MAX_UINT64 = 2**64 - 1
_MAX_INT64 = 2**63 - 1


def _check_uint64(n: int) -> None:
    if not 0 <= n <= _MAX_UINT64:
        raise ValueError(f"value out of uint64 range: {n}")


def uint64_grouping(n: int) -> str:
    """Format ``n`` with digits grouped by three, e.g. 1000000 -> '1,000,000'."""
    _check_uint64(n)
    return f"{n:,}"


def _fraction(value: int, precision: int) -> str:
    whole, frac = divmod(value, 10**precision)
    if not frac:
        return str(whole)
    digits = f"{frac:0{precision}d}".rstrip("0")
    return f"{whole}.{digits}"


def format_duration_ns(ns: int) -> str:
    """Format a duration in nanoseconds, e.g. 100_000_000_000 -> '1m40s'."""
    _check_uint64(ns)
    if ns > _MAX_INT64:
        return f"{ns}ns"
    if ns == 0:
        return "0s"
    if ns < 1_000:
        return f"{ns}ns"
    if ns < 1_000_000:
        return _fraction(ns, 3) + "µs"
    if ns < 1_000_000_000:
        return _fraction(ns, 6) + "ms"

    seconds, subsecond = divmod(ns, 1_000_000_000)
    minutes, secs = divmod(seconds, 60)
    text = _fraction(secs * 1_000_000_000 + subsecond, 9) + "s"
    if minutes:
        hours, mins = divmod(minutes, 60)
        text = f"{mins}m{text}"
        if hours:
            text = f"{hours}h{text}"
    return text