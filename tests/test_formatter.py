import pytest

from hubblecli.formatter import format_duration_ns, uint64_grouping

MAX_INT64 = 2**63 - 1
MAX_UINT64 = 2**64 - 1


@pytest.mark.parametrize(
    "n, want",
    [
        (0, "0"),
        (1, "1"),
        (10, "10"),
        (100, "100"),
        (1_000, "1,000"),
        (10_000, "10,000"),
        (100_000, "100,000"),
        (1_000_000, "1,000,000"),
        (MAX_UINT64, "18,446,744,073,709,551,615"),
    ],
)
def test_uint64_grouping(n, want):
    assert uint64_grouping(n) == want


@pytest.mark.parametrize(
    "n, want",
    [
        (0, "0s"),
        (1, "1ns"),
        (10, "10ns"),
        (100, "100ns"),
        (1000, "1µs"),
        (10_000, "10µs"),
        (100_000, "100µs"),
        (1_000_000, "1ms"),
        (10_000_000, "10ms"),
        (100_000_000, "100ms"),
        (1_000_000_000, "1s"),
        (10 * 10**9, "10s"),
        (10 * 10**10, "1m40s"),
        (10 * 10**11, "16m40s"),
        (10 * 10**12, "2h46m40s"),
        (10 * 10**13, "27h46m40s"),
        (10 * 10**14, "277h46m40s"),
        (10 * 10**15, "2777h46m40s"),
        (10 * 10**16, "27777h46m40s"),
        (10 * 10**17, "277777h46m40s"),
        (MAX_INT64, "2562047h47m16.854775807s"),
        (MAX_INT64 + 1, "9223372036854775808ns"),
        (MAX_UINT64, "18446744073709551615ns"),
    ],
)
def test_format_duration_ns(n, want):
    assert format_duration_ns(n) == want


def test_server_status_uptime():
    assert format_duration_ns(301515181665) == "5m1.515181665s"


@pytest.mark.parametrize("bad", [-1, MAX_UINT64 + 1])
def test_out_of_range_values_are_rejected(bad):
    with pytest.raises(ValueError):
        uint64_grouping(bad)
    with pytest.raises(ValueError):
        format_duration_ns(bad)