"""Run the DiskStore command line tool: ``python3 diskstore.py --root DIR get KEY``."""
import sys

from diskstore_lib.cli import main

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
