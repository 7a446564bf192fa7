"""FASTA record source for logan-format unitig/contig files.

Each header carries the abundance of its sequence:

    >[accession]_[counter] ka:f:[abundance]

for example ``>SRR1234_17 ka:f:12.5``.  Records are yielded lazily, one per
FASTA entry, so a file is read exactly once; open a new reader to re-scan it.

Input may be plain text, gzip (``.gz``) or zstd (``.zst`` / ``.zstd``)
compressed; the format is picked from the file extension.
"""

import dataclasses
import gzip
import math
import re
import zlib

import zstandard

# Abundance tag: "ka:f:12", "ka:f:12.5", "ka:f:1e3"
_ABUNDANCE_RE = re.compile(r'ka:f:(\d+(?:\.\d*)?(?:[eE][-+]?\d+)?|\.\d+(?:[eE][-+]?\d+)?)')

ZSTD_EXTENSIONS = ('.zst', '.zstd')


class MalformedHeader(ValueError):
    """Header without a ka:f: abundance, or sequence data before any header."""


class DecompressionError(OSError):
    """Corrupt or truncated compressed input."""


@dataclasses.dataclass(frozen=True)
class SequenceRecord:
    """One FASTA entry: header text (without '>'), bases and abundance."""
    name: str
    sequence: str
    abundance: float


def parse_abundance(header):
    """Return the float abundance in a header, or raise MalformedHeader."""
    match = _ABUNDANCE_RE.search(header)
    if match is None:
        raise MalformedHeader(f"no 'ka:f:<abundance>' tag in header: {header!r}")
    abundance = float(match.group(1))
    if not math.isfinite(abundance):
        raise MalformedHeader(f"abundance out of range in header: {header!r}")
    return abundance


def open_sequence_file(path):
    """Open a FASTA file for text reading, decompressing by extension."""
    lower = path.lower()
    if lower.endswith('.gz'):
        return gzip.open(path, 'rt')
    if lower.endswith(ZSTD_EXTENSIONS):
        return zstandard.open(path, 'rt')
    return open(path, 'r')


def iter_records(handle):
    """Yield SequenceRecords from an open text handle."""
    name = None
    abundance = None
    parts = []
    for line in handle:
        line = line.strip()
        if not line:
            continue
        if line.startswith('>'):
            if name is not None:
                yield SequenceRecord(name, ''.join(parts), abundance)
            name = line[1:]
            abundance = parse_abundance(name)
            parts = []
        elif name is None:
            raise MalformedHeader(f"sequence data before the first header: {line[:40]!r}")
        else:
            parts.append(line)
    if name is not None:
        yield SequenceRecord(name, ''.join(parts), abundance)


def read_records(path):
    """Yield SequenceRecords from a (possibly compressed) FASTA file.

    Decoder failures are re-raised as DecompressionError so callers can tell
    a corrupt archive from a missing file.
    """
    with open_sequence_file(path) as f:
        try:
            yield from iter_records(f)
        except (zstandard.ZstdError, gzip.BadGzipFile, zlib.error, EOFError) as e:
            raise DecompressionError(f"cannot decompress {path}: {e}") from e
