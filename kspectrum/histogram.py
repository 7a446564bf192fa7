"""Reduce a k-mer spectrum to a frequency histogram and print it.

Bucketing:
  Accumulated abundances are float sums of per-record ka:f: values.  Each is
  rounded half away from zero to an integer bucket (abundances are never
  negative, this is round-half-up): 2.5 -> 3, 2.49 -> 2.  Totals of
  2**63 or more cannot be bucketed unless a limit caps them.

Limit:
  overflow="clamp"  buckets above the limit collapse into the limit bucket,
                    so its count is the number of k-mers with bucket >= limit.
  overflow="drop"   buckets above the limit are left out of the report.

Report format (tab-separated, header first, buckets ascending):
  K-mer Frequency	Count
  1	53012
  2	8121
"""

import dataclasses
import os
import sys
import numpy as np

from .spectrum import count_file

OVERFLOW_MODES = ("clamp", "drop")
REPORT_HEADER = "K-mer Frequency\tCount"
MAX_BUCKET = 2 ** 63


@dataclasses.dataclass
class SpectrumSummary:
    """Overview of one spectrum, printed after a run."""
    distinct_kmers: int
    total_abundance: float
    min_abundance: float
    max_abundance: float


def abundance_buckets(spectrum: dict, cap=None) -> np.ndarray:
    """Integer bucket for every k-mer in the spectrum (int64 array).

    Values above cap are lowered to cap before rounding, so huge totals can
    still be bucketed against a limit.  Without a cap, a total that does not
    fit in int64 raises ValueError.
    """
    values = np.fromiter(spectrum.values(), dtype=np.float64, count=len(spectrum))
    if cap is not None:
        values = np.minimum(values, float(cap))
    if not np.all(np.isfinite(values)) or values.max() >= MAX_BUCKET:
        raise ValueError(f"abundance total too large to bucket: {values.max():g}")
    floors = np.floor(values)
    # exact half-up: floor(x + 0.5) misrounds values just below .5
    return (floors + (values - floors >= 0.5)).astype(np.int64)


def build_histogram(spectrum: dict, limit=None, overflow="clamp") -> list:
    """Count distinct k-mers per abundance bucket.

    Returns a list of (bucket, count) int pairs sorted by bucket; empty
    buckets are not listed.
    """
    if overflow not in OVERFLOW_MODES:
        raise ValueError(f"overflow must be one of {OVERFLOW_MODES}, got {overflow!r}")
    if limit is not None and limit < 0:
        raise ValueError(f"limit must be non-negative, got {limit}")
    if not spectrum:
        return []

    if limit is None:
        buckets = abundance_buckets(spectrum)
    else:
        # anything at limit + 1 or more is over the limit either way
        buckets = abundance_buckets(spectrum, cap=limit + 1)
        if overflow == "clamp":
            buckets = np.minimum(buckets, limit)
        else:
            buckets = buckets[buckets <= limit]

    keys, counts = np.unique(buckets, return_counts=True)
    return [(int(b), int(c)) for b, c in zip(keys, counts)]


def summarize(spectrum: dict) -> SpectrumSummary:
    if not spectrum:
        return SpectrumSummary(0, 0.0, 0.0, 0.0)
    values = list(spectrum.values())
    return SpectrumSummary(
        distinct_kmers=len(spectrum),
        total_abundance=float(sum(values)),
        min_abundance=float(min(values)),
        max_abundance=float(max(values)),
    )


def write_histogram(histogram, out=None):
    """Print the header row and one 'bucket<TAB>count' row per pair."""
    out = out if out is not None else sys.stdout
    print(REPORT_HEADER, file=out)
    for bucket, count in histogram:
        print(bucket, count, sep="\t", file=out)


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

def main(argv=None):
    import argparse
    parser = argparse.ArgumentParser(
        prog="kspectrum hist",
        description=(
            "Weighted k-mer frequency histogram of a logan FASTA file.\n\n"
            "Every k-mer is weighted by the abundance in the header of each\n"
            "sequence it occurs in:\n"
            "  >[accession]_[counter] ka:f:[abundance]\n\n"
            "Input may be plain, gzip (.gz) or zstd (.zst) compressed."
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("fasta", help="Input FASTA (.fa, .fa.gz or .fa.zst)")
    parser.add_argument("k", type=int, help="k-mer size (1-32)")
    parser.add_argument("-l", "--limit", type=int, default=None,
                        help="Maximum frequency to report; higher frequencies are "
                             "added to the limit bucket")
    parser.add_argument("--drop-over-limit", action="store_true",
                        help="Omit frequencies above --limit instead of adding "
                             "them to the limit bucket")
    parser.add_argument("--canonical", action="store_true",
                        help="Merge each k-mer with its reverse complement")
    parser.add_argument("--optimized", action="store_true",
                        help="k=31 only: count each 31-base record as one k-mer")
    parser.add_argument("-o", "--output", default=None,
                        help="Write the histogram to this file (default: stdout)")
    parser.add_argument("--quiet", action="store_true",
                        help="Do not print progress or the summary to stderr")
    args = parser.parse_args(argv)

    if args.limit is not None and args.limit < 0:
        parser.error(f"--limit must be non-negative (got {args.limit})")
    if not os.path.isfile(args.fasta):
        print(f"ERROR: input file not found: {args.fasta}", file=sys.stderr)
        sys.exit(1)

    if not args.quiet:
        print(f"Counting {args.k}-mers in {os.path.basename(args.fasta)}...",
              file=sys.stderr)
    try:
        acc = count_file(args.fasta, args.k,
                         canonical=args.canonical, optimized=args.optimized)
    except (ValueError, OSError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    overflow = "drop" if args.drop_over_limit else "clamp"
    try:
        histogram = build_histogram(acc.spectrum, limit=args.limit, overflow=overflow)
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        sys.exit(1)

    if args.output:
        try:
            with open(args.output, 'w') as f:
                write_histogram(histogram, f)
        except OSError as e:
            print(f"ERROR: cannot write {args.output}: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        write_histogram(histogram)

    if not args.quiet:
        s = summarize(acc.spectrum)
        print(f"Records: {acc.n_records}  k-mer occurrences: {acc.n_windows}  "
              f"distinct k-mers: {s.distinct_kmers}", file=sys.stderr)
        print(f"Total abundance: {s.total_abundance:g}  "
              f"abundance range: {s.min_abundance:g}-{s.max_abundance:g}",
              file=sys.stderr)


if __name__ == "__main__":
    main()
