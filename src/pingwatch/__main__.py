# --- Standard library imports ---
import sys

# --- Project imports ---
from .cli import main


if __name__ == "__main__":
    sys.exit(main())
