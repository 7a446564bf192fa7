"""kspectrum CLI entry point.

Usage:
    kspectrum <command> [<args>]
    python -m kspectrum <command> [<args>]
"""

import difflib
import sys

COMMANDS = ["hist", "dump"]

USAGE = """\
usage: kspectrum <command> [<args>]

kspectrum: abundance-weighted k-mer spectra of logan unitig/contig FASTA files.

Commands:
  hist        Print the k-mer frequency histogram (frequency, number of k-mers)
  dump        Write the raw k-mer -> summed abundance table

Use 'kspectrum <command> -h' for help on a specific command.
"""


def _suggest(word, candidates, n=1, cutoff=0.6):
    """Return close matches for typo suggestions."""
    return difflib.get_close_matches(word, candidates, n=n, cutoff=cutoff)


def main(argv=None):
    args = argv if argv is not None else sys.argv[1:]

    if not args or args[0] in ("-h", "--help"):
        print(USAGE)
        sys.exit(0)

    cmd, rest = args[0], args[1:]

    if cmd == "hist":
        from .histogram import main as run
        run(rest)

    elif cmd == "dump":
        from .spectrum import main as run
        run(rest)

    else:
        msg = f"Unknown command: {cmd}"
        hint = _suggest(cmd, COMMANDS)
        if hint:
            msg += f"\n\nDid you mean: kspectrum {hint[0]}?"
        print(msg)
        print(USAGE)
        sys.exit(1)


if __name__ == "__main__":
    main()
