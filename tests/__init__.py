from pathlib import Path
import sys

# Make the src/ layout importable when the suite runs from a checkout
sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))
