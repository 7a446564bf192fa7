import io

import pytest

from kspectrum.encoding import encode_kmer
from kspectrum.histogram import (REPORT_HEADER, build_histogram, summarize,
                                 write_histogram)


def spectrum_of(values):
    return {i: v for i, v in enumerate(values)}


def test_single_kmer():
    assert build_histogram({encode_kmer("AAAA"): 5.0}) == [(5, 1)]


def test_buckets_sorted_and_counted():
    spectrum = spectrum_of([1.0, 2.0, 1.0, 7.0, 2.0, 1.0])
    assert build_histogram(spectrum) == [(1, 3), (2, 2), (7, 1)]


def test_empty_spectrum():
    assert build_histogram({}) == []
    assert build_histogram({}, limit=3) == []


@pytest.mark.parametrize("value,bucket", [
    (0.4, 0), (0.49999999999999994, 0), (0.5, 1), (1.4999999999999998, 1),
    (1.49, 1), (2.5, 3), (3.5, 4), (2.999, 3),
])
def test_rounding_half_away_from_zero(value, bucket):
    assert build_histogram({0: value}) == [(bucket, 1)]


def test_clamp_into_limit_bucket():
    spectrum = spectrum_of([1, 2, 3, 4, 5, 9, 3])
    hist = build_histogram(spectrum, limit=3)
    assert hist == [(1, 1), (2, 1), (3, 5)]
    assert max(b for b, _ in hist) <= 3
    assert dict(hist)[3] == sum(1 for v in spectrum.values() if v >= 3)


def test_drop_over_limit():
    spectrum = spectrum_of([1, 2, 3, 4, 5, 9, 3])
    assert build_histogram(spectrum, limit=3, overflow="drop") == [(1, 1), (2, 1), (3, 2)]


def test_limit_zero_collapses_everything():
    assert build_histogram(spectrum_of([1, 4, 8]), limit=0) == [(0, 3)]


def test_bad_arguments():
    with pytest.raises(ValueError):
        build_histogram({0: 1.0}, limit=-1)
    with pytest.raises(ValueError):
        build_histogram({0: 1.0}, overflow="overflow")


def test_write_histogram():
    out = io.StringIO()
    write_histogram([(1, 3), (2, 1)], out)
    assert out.getvalue() == f"{REPORT_HEADER}\n1\t3\n2\t1\n"
    assert REPORT_HEADER == "K-mer Frequency\tCount"


def test_summarize():
    s = summarize(spectrum_of([1.0, 2.5, 10.0]))
    assert s.distinct_kmers == 3
    assert s.total_abundance == 13.5
    assert (s.min_abundance, s.max_abundance) == (1.0, 10.0)
    assert summarize({}).distinct_kmers == 0


def test_huge_totals_clamp_into_limit_bucket():
    spectrum = {0: float("inf"), 1: 1e300, 2: 2.0 ** 63, 3: 2.0}
    assert build_histogram(spectrum, limit=5) == [(2, 1), (5, 3)]
    assert build_histogram(spectrum, limit=5, overflow="drop") == [(2, 1)]


def test_huge_totals_without_limit_rejected():
    with pytest.raises(ValueError):
        build_histogram({0: 2.0 ** 63})
    with pytest.raises(ValueError):
        build_histogram({0: float("inf")})
