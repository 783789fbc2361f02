"""Main entry point for running openfoamparser as a module."""

import sys

from openfoamparser.cli.app import main

if __name__ == "__main__":
    sys.exit(main())
