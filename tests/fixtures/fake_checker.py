"""
Stand-in type checker used by the test suite.

Usage: fake_checker.py ENTRY

Fails when the source contains the marker ``TYPE ERROR``.
"""

import os
import sys

MARKER = "TYPE ERROR"


def main(argv):
    entry = argv[0]
    with open(entry, "r", encoding="utf-8") as f:
        lines = f.read().splitlines()
    for number, line in enumerate(lines, start=1):
        column = line.find(MARKER)
        if column >= 0:
            print(f"{os.path.basename(entry)}({number},{column + 1}): error TS2322: Type 'string' is not assignable to type 'number'.")
            return 1
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
