"""Detection feed loading."""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Union

from pydantic import ValidationError

from common.exceptions import MalformedInputError
from common.types import DetectionFeed

logger = logging.getLogger(__name__)


def load_feed(path: Union[str, Path]) -> DetectionFeed:
    """Read and validate the whole detection feed at startup."""
    path = Path(path)
    try:
        # Floats stay as text so the camera position can be logged verbatim
        data = json.loads(path.read_text(encoding="utf-8"), parse_float=str)
    except json.JSONDecodeError as e:
        raise MalformedInputError(f"detection feed {path} is not valid JSON: {e}") from e

    try:
        feed = DetectionFeed.model_validate(data)
    except ValidationError as e:
        raise MalformedInputError(f"detection feed {path} does not match schema: {e}") from e

    logger.info("Detection feed loaded: %d frames from %s", feed.frame_count, path)
    return feed
