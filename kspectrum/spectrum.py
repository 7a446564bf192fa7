"""Abundance-weighted k-mer counting over logan FASTA records, or dump the raw spectrum."""

import sys
import os

from .encoding import (BASE_MAP, InvalidBase, check_k, kmer_mask, encode_kmer,
                       decode_kmer, canonical as canonical_kmer)
from .fasta import read_records

# Logan unitigs/contigs at this length are their own single 31-mer
OPTIMIZED_K = 31


class SpectrumAccumulator:
    """Maps every (optionally canonical) k-mer to the summed abundance of its occurrences.

    Two folding strategies, chosen once at construction:

      general    slide a k-window over the record; each valid window adds the
                 record's abundance to its k-mer.  A base outside ACGT breaks
                 the run, so every window covering it is skipped.
      k=31 fast  with optimized=True and k == 31, a record of exactly 31
                 bases is itself the k-mer: one map update instead of a scan.
                 Records of any other length fall back to the general path.

    Args:
        k:          k-mer size, 1..32 (InvalidK otherwise).
        canonical:  Fold each k-mer with its reverse complement (min of the two).
        optimized:  Request the k=31 fast path; ignored with a warning for other k.
    """

    def __init__(self, k, canonical=False, optimized=False):
        self.k = check_k(k)
        self.canonical = canonical
        self.optimized = bool(optimized) and k == OPTIMIZED_K
        if optimized and not self.optimized:
            print(f"  WARN: --optimized only applies to k={OPTIMIZED_K} "
                  f"(got k={k}); using sliding windows", file=sys.stderr)
        self._mask = kmer_mask(k)
        self._rc_shift = 2 * (k - 1)
        self._counts = {}
        self.n_records = 0
        self.n_windows = 0

    def __len__(self):
        return len(self._counts)

    @property
    def spectrum(self):
        """dict[int_kmer] -> accumulated abundance."""
        return self._counts

    def fold(self, record):
        """Add one record's k-mers to the spectrum."""
        self.n_records += 1
        seq = record.sequence
        if self.optimized and len(seq) == self.k:
            self._fold_whole(seq, record.abundance)
        else:
            self._fold_windows(seq, record.abundance)

    def fold_all(self, records):
        """Fold an iterable of records; returns how many were consumed."""
        n = 0
        for record in records:
            self.fold(record)
            n += 1
        return n

    def _add(self, kmer, abundance):
        counts = self._counts
        counts[kmer] = counts.get(kmer, 0.0) + abundance
        self.n_windows += 1

    def _fold_whole(self, seq, abundance):
        try:
            kmer = encode_kmer(seq)
        except InvalidBase:
            return
        self._add(canonical_kmer(kmer, self.k, self.canonical), abundance)

    def _fold_windows(self, seq, abundance):
        k = self.k
        mask = self._mask
        shift = self._rc_shift
        canonical = self.canonical
        fwd = 0
        rev = 0
        run = 0  # consecutive valid bases ending at the current position
        for base in seq:
            code = BASE_MAP.get(base)
            if code is None:
                run = 0
                continue
            fwd = ((fwd << 2) | code) & mask
            rev = (rev >> 2) | ((3 - code) << shift)
            run += 1
            if run >= k:
                self._add(min(fwd, rev) if canonical else fwd, abundance)


def count_file(path, k, canonical=False, optimized=False):
    """Build the spectrum of a FASTA file (.fa, .fa.gz or .fa.zst)."""
    acc = SpectrumAccumulator(k, canonical=canonical, optimized=optimized)
    acc.fold_all(read_records(path))
    return acc


def write_spectrum(spectrum, k, out):
    """Write 'kmer<TAB>abundance' lines, sorted by encoded k-mer."""
    for kmer in sorted(spectrum):
        print(decode_kmer(kmer, k), f"{spectrum[kmer]:g}", sep="\t", file=out)


def main(argv=None):
    import argparse
    parser = argparse.ArgumentParser(
        prog="kspectrum dump",
        description="Count abundance-weighted k-mers in a logan FASTA file and "
                    "write the raw per-k-mer table (kmer<TAB>abundance).",
    )
    parser.add_argument("fasta", help="Input FASTA (.fa, .fa.gz or .fa.zst)")
    parser.add_argument("k", type=int, help="k-mer size (1-32)")
    parser.add_argument("output", help="Output TSV file")
    parser.add_argument("--canonical", action="store_true",
                        help="Merge each k-mer with its reverse complement")
    parser.add_argument("--optimized", action="store_true",
                        help="k=31 only: count each 31-base record as one k-mer")
    parser.add_argument("--quiet", action="store_true",
                        help="Do not print progress to stderr")
    args = parser.parse_args(argv)

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

    try:
        with open(args.output, 'w') as f:
            write_spectrum(acc.spectrum, args.k, f)
    except OSError as e:
        print(f"ERROR: cannot write {args.output}: {e}", file=sys.stderr)
        sys.exit(1)
    if not args.quiet:
        print(f"Spectrum saved to {args.output} ({len(acc)} k-mers "
              f"from {acc.n_records} records)", file=sys.stderr)


if __name__ == "__main__":
    main()
