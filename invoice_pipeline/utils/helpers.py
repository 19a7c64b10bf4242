"""
Helper Utilities Module.

Small generic helpers shared by the input and output stages.

Functions:
    - ensure_directory: Create directory if it doesn't exist
    - get_file_extension: Extract file extension safely
    - guess_media_type: Map a filename to the media type the gate checks
    - generate_timestamp: Generate formatted timestamps
    - format_file_size: Human readable byte counts for log lines
"""

from datetime import datetime
from pathlib import Path
from typing import Union

# Extension to media type for everything the pipeline can acquire text from
MEDIA_TYPES = {
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".bmp": "image/bmp",
    ".webp": "image/webp",
    ".gif": "image/gif",
}


def ensure_directory(path: Union[str, Path]) -> Path:
    """
    Ensure a directory exists, creating it if necessary.

    Args:
        path: Directory path to ensure exists.

    Returns:
        Path object pointing to the directory.

    Example:
        >>> ensure_directory("outputs/reports")
        PosixPath('outputs/reports')
    """
    dir_path = Path(path)
    dir_path.mkdir(parents=True, exist_ok=True)
    return dir_path


def get_file_extension(filepath: Union[str, Path]) -> str:
    """
    Extract the lowercase file extension, including the dot.

    Example:
        >>> get_file_extension("document.PDF")
        ".pdf"
        >>> get_file_extension("noextension")
        ""
    """
    return Path(filepath).suffix.lower()


def guess_media_type(filepath: Union[str, Path]) -> str:
    """
    Guess the media type of a file from its extension.

    Unknown extensions map to ``application/octet-stream`` so that the
    request gate rejects them with a readable message.

    Example:
        >>> guess_media_type("scan.JPG")
        "image/jpeg"
    """
    return MEDIA_TYPES.get(get_file_extension(filepath), "application/octet-stream")


def generate_timestamp(format_str: str = "%Y%m%d_%H%M%S") -> str:
    """
    Generate a formatted timestamp string.

    Example:
        >>> generate_timestamp()
        "20260121_143022"
    """
    return datetime.now().strftime(format_str)


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format.

    Example:
        >>> format_file_size(1536)
        "1.5 KB"
    """
    size = float(size_bytes)
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size < 1024.0:
            return f"{size:.1f} {unit}"
        size /= 1024.0
    return f"{size:.1f} TB"
