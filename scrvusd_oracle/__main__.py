"""Allow running the package as a module: python -m scrvusd_oracle"""

import sys

from scrvusd_oracle.cli import main

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
