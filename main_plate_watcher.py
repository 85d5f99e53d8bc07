import sys
from pathlib import Path

# Add the code directory to the Python path
sys.path.insert(0, str(Path(__file__).parent / "code"))

from cli import main

if __name__ == "__main__":
    sys.exit(main())
