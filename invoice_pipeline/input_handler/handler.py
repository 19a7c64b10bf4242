"""
Main Input Handler Module.

This module defines RawInput, the immutable unit of work handed to the
pipeline, and the InputHandler that builds RawInputs from files on disk.

Callers that already hold uploaded bytes (a web request, a queue message)
construct RawInput directly; the CLI goes through InputHandler.

Usage:
    from invoice_pipeline.input_handler import InputHandler

    handler = InputHandler()
    raw = handler.load("invoice.pdf")

    # Collect a whole directory
    inputs = handler.load_batch("./invoices/")

Classes:
    RawInput: One uploaded file
    InputHandler: Builds RawInputs from paths
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Union

from config import get_config
from invoice_pipeline.utils.logger import get_logger
from invoice_pipeline.utils.helpers import get_file_extension, guess_media_type, format_file_size


# Initialize module logger
logger = get_logger(__name__)

PDF_MEDIA_TYPE = "application/pdf"

IMAGE_MEDIA_TYPES = frozenset({
    "image/png",
    "image/jpeg",
    "image/jpg",
    "image/tiff",
    "image/bmp",
    "image/webp",
    "image/gif",
})


@dataclass(frozen=True)
class RawInput:
    """
    One uploaded file.

    Attributes:
        name: Original filename, used to label results
        content: Raw bytes of the upload
        media_type: Declared media type (e.g. "application/pdf")
        size: Declared size in bytes; the request gate checks this value
    """
    name: str
    content: bytes = field(repr=False)
    media_type: str
    size: int

    @classmethod
    def from_bytes(cls, name: str, content: bytes, media_type: str = None) -> 'RawInput':
        """Build a RawInput whose declared size is the content length."""
        return cls(
            name=name,
            content=content,
            media_type=media_type or guess_media_type(name),
            size=len(content),
        )

    @property
    def is_pdf(self) -> bool:
        return self.media_type.lower() == PDF_MEDIA_TYPE

    @property
    def is_image(self) -> bool:
        return self.media_type.lower() in IMAGE_MEDIA_TYPES


class InputHandler:
    """
    Loads invoice files from disk into RawInput objects.

    Only reading happens here. Tier limits (size, media type, batch size)
    are enforced later by the request gate so that every file, valid or
    not, is reported in the batch result.

    Attributes:
        supported_extensions: Extensions picked up when scanning directories

    Example:
        >>> handler = InputHandler()
        >>> inputs = handler.collect(["a.pdf", "./more_invoices/"])
        >>> print(f"Loaded {len(inputs)} files")
    """

    DEFAULT_EXTENSIONS = ['.pdf', '.png', '.jpg', '.jpeg', '.tif', '.tiff', '.bmp', '.webp', '.gif']

    def __init__(self) -> None:
        self.supported_extensions = {
            ext.lower() for ext in get_config("input.supported_extensions", self.DEFAULT_EXTENSIONS)
        }

    def load(self, filepath: Union[str, Path]) -> RawInput:
        """
        Read a single file.

        Args:
            filepath: Path to the invoice file.

        Returns:
            RawInput with the media type guessed from the extension.

        Raises:
            FileNotFoundError: If the path does not exist or is not a file.
        """
        path = Path(filepath)

        if not path.is_file():
            raise FileNotFoundError(f"File not found: {filepath}")

        content = path.read_bytes()
        raw = RawInput.from_bytes(path.name, content)
        logger.debug(f"Loaded {path.name} ({format_file_size(raw.size)}, {raw.media_type})")
        return raw

    def load_batch(self, directory: Union[str, Path], recursive: bool = False) -> List[RawInput]:
        """
        Read every supported file in a directory, sorted by path.

        Args:
            directory: Path to directory containing invoice files.
            recursive: Whether to search subdirectories.

        Raises:
            FileNotFoundError: If the directory does not exist.
            NotADirectoryError: If the path is not a directory.
        """
        directory = Path(directory)

        if not directory.exists():
            raise FileNotFoundError(f"Directory not found: {directory}")

        if not directory.is_dir():
            raise NotADirectoryError(f"Path is not a directory: {directory}")

        pattern = "**/*" if recursive else "*"
        files = sorted(
            path for path in directory.glob(pattern)
            if path.is_file() and get_file_extension(path) in self.supported_extensions
        )

        logger.info(f"Found {len(files)} files in {directory}")
        return [self.load(path) for path in files]

    def collect(self, paths: Iterable[Union[str, Path]], recursive: bool = False) -> List[RawInput]:
        """
        Read a mix of file and directory paths, preserving argument order.
        """
        inputs = []
        for entry in paths:
            entry = Path(entry)
            if entry.is_dir():
                inputs.extend(self.load_batch(entry, recursive=recursive))
            else:
                inputs.append(self.load(entry))
        return inputs
