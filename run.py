"""
Entry point for PaperDrum.
Usage: python run.py [--config configs/paper_drum.yaml]
"""

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

try:
    from paper_drum.main import main

except ImportError as e:
    print(f"Error: {e}")
    print("\nMake sure to install dependencies first:")
    print("pip install -e .")
    sys.exit(1)

if __name__ == "__main__":
    main()
