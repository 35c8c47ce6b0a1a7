"""
Stand-in bundler used by the test suite.

Usage: fake_bundler.py ENTRY OUTPUT [FLAGS...]

Copies ENTRY to OUTPUT. A source containing the marker ``SYNTAX ERROR``
fails with a compiler-style diagnostic pointing at the marker.
"""

import os
import shutil
import sys

MARKER = "SYNTAX ERROR"


def main(argv):
    positional = [arg for arg in argv if not arg.startswith("--")]
    if len(positional) != 2:
        print("usage: fake_bundler.py ENTRY OUTPUT", file=sys.stderr)
        return 2
    entry, output = positional

    with open(entry, "r", encoding="utf-8") as f:
        lines = f.read().splitlines()
    for number, line in enumerate(lines, start=1):
        column = line.find(MARKER)
        if column >= 0:
            print(f"{os.path.basename(entry)}({number},{column + 1}): error TS1005: ';' expected.")
            return 1

    os.makedirs(os.path.dirname(os.path.abspath(output)), exist_ok=True)
    shutil.copyfile(entry, output)
    print(f"bundled {os.path.basename(entry)} ({' '.join(arg for arg in argv if arg.startswith('--'))})")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
