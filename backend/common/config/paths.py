"""Path configuration for the backend."""
import os
from pathlib import Path

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[2]
load_dotenv(dotenv_path=BASE_DIR / ".env")

# Directories
DATA_DIR = BASE_DIR / "data"
OUTPUT_DIR = BASE_DIR / "output"

# Default inputs (local fallback)
DEFAULT_FEED_PATH = DATA_DIR / "out.json"
DEFAULT_DEPTH_PATH = DATA_DIR / "depth.dat"

# Default outputs
DEFAULT_METADATA_PATH = OUTPUT_DIR / "metadata.txt"
DEFAULT_TRACKS_PATH = OUTPUT_DIR / "tracks.ndjson"

FEED_PATH = Path(os.getenv("GEOTRACK_FEED_PATH", str(DEFAULT_FEED_PATH)))
DEPTH_PATH = Path(os.getenv("GEOTRACK_DEPTH_PATH", str(DEFAULT_DEPTH_PATH)))
METADATA_PATH = Path(os.getenv("GEOTRACK_METADATA_PATH", str(DEFAULT_METADATA_PATH)))
