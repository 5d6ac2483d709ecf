"""Entry point for running as module: python -m swapflow"""

# Load .env file before importing anything else
from dotenv import load_dotenv
load_dotenv()

import sys

from swapflow.main import main

if __name__ == "__main__":
    sys.exit(main())
