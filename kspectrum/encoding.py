"""2-bit nucleotide packing: encode/decode DNA k-mers as integers (k <= 32)."""

MAX_K = 32

BASE_MAP = {'A': 0, 'C': 1, 'G': 2, 'T': 3,
            'a': 0, 'c': 1, 'g': 2, 't': 3}
INT_TO_BASE = {0: 'A', 1: 'C', 2: 'G', 3: 'T'}


class InvalidK(ValueError):
    """k-mer size outside [1, MAX_K]."""


class InvalidBase(ValueError):
    """Character outside {A, C, G, T} (either case)."""


def check_k(k):
    """Raise InvalidK unless k fits in a 64-bit 2-bit encoding."""
    if isinstance(k, bool) or not isinstance(k, int) or not 1 <= k <= MAX_K:
        raise InvalidK(f"k must be an integer in [1, {MAX_K}], got {k!r}")
    return k


def kmer_mask(k):
    return (1 << (2 * k)) - 1


def encode_base(base):
    try:
        return BASE_MAP[base]
    except KeyError:
        raise InvalidBase(f"invalid base {base!r}") from None


def decode_base(code):
    return INT_TO_BASE[code]


def complement(code):
    """A<->T, C<->G on 2-bit codes."""
    return 3 - code


def encode_kmer(seq):
    """Encode a k-mer string to an integer, first base in the high bits."""
    val = 0
    for base in seq:
        val = (val << 2) | encode_base(base)
    return val


def decode_kmer(val, k):
    """Decode an integer back to its k-mer string."""
    bases = []
    for _ in range(k):
        bases.append(INT_TO_BASE[val & 3])
        val >>= 2
    return ''.join(reversed(bases))


def reverse_complement(val, k):
    """Reverse complement of an encoded k-mer, without going through the string.

    XOR with the mask complements every field (3 - c == c ^ 3), then the
    fields are popped off the low end and pushed onto the result in reverse.
    """
    val ^= kmer_mask(k)
    rc = 0
    for _ in range(k):
        rc = (rc << 2) | (val & 3)
        val >>= 2
    return rc


def canonical(val, k, enabled=True):
    """Smaller of a k-mer and its reverse complement, or val unchanged."""
    if not enabled:
        return val
    return min(val, reverse_complement(val, k))
