#!/usr/bin/env python3
"""Generate a CV from ORCID data and the local personnel/service tables.

This is a thin wrapper around the academia_cv package, equivalent to the
``academia-cv`` console script.
"""

from academia_cv.cli import main

if __name__ == "__main__":
    main()
