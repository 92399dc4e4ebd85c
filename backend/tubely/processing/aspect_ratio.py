"""
Aspect-ratio classification for uploaded videos.

Ratios are computed in single precision and matched exactly against the
literals below unless a tolerance is configured. Sizes that only
approximate 16:9 (854x480, 1366x768, ...) therefore land in "other".
"""
import numpy as np
from tubely.processing.media import MediaProcessingError, MediaTool

LANDSCAPE = "16:9"
PORTRAIT = "9:16"
OTHER = "other"

KNOWN_RATIOS = {
    LANDSCAPE: (np.float32(1.7777778),),
    # 0.5625 is 1080x1920; 0.56296295 is 608x1080
    PORTRAIT: (np.float32(0.5625), np.float32(0.56296295)),
}

PREFIXES = {
    LANDSCAPE: "landscape",
    PORTRAIT: "portrait",
    OTHER: "other",
}


def classify_aspect_ratio(width: int, height: int, tolerance: float = 0.0) -> str:
    if height <= 0 or width <= 0:
        raise MediaProcessingError(f"invalid video dimensions {width}x{height}")

    ratio = np.float32(width) / np.float32(height)
    for label, literals in KNOWN_RATIOS.items():
        for literal in literals:
            if tolerance > 0:
                if abs(float(ratio) - float(literal)) <= tolerance:
                    return label
            elif ratio == literal:
                return label
    return OTHER


def aspect_ratio_prefix(aspect_ratio: str) -> str:
    return PREFIXES.get(aspect_ratio, PREFIXES[OTHER])


def get_video_prefix(media_tool: MediaTool, path: str, tolerance: float = 0.0) -> str:
    """Probe the file and map its aspect ratio to a storage key prefix."""
    dimensions = media_tool.probe(path)
    return aspect_ratio_prefix(
        classify_aspect_ratio(dimensions.width, dimensions.height, tolerance)
    )
