"""Base emitter class for document generation.

This module defines the abstract base class for all emitters, providing a
common interface for turning a run into an external document.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional, Union

from ..config.models import SynthConfig

if TYPE_CHECKING:
    from ..run import Run


class IaCEmitter(ABC):
    """Abstract base class for Infrastructure-as-Code emitters.

    All emitters must implement this interface to provide consistent
    document generation across different formats.
    """

    def __init__(self, config: Optional[SynthConfig] = None) -> None:
        """Initialize emitter with optional configuration.

        Args:
            config: Synthesis configuration (defaults apply when omitted)
        """
        self.config = config or SynthConfig()

    @abstractmethod
    def emit(self, run: "Run") -> Dict[str, Any]:
        """Build the document for a run.

        Args:
            run: Run holding every declared node

        Returns:
            Document as plain data
        """
        raise NotImplementedError("Document emission not yet implemented")

    @abstractmethod
    def render(self, run: "Run") -> str:
        """Serialize the document to text, byte-identical across calls."""
        raise NotImplementedError("Document rendering not yet implemented")

    def write(self, run: "Run", out_dir: Optional[Union[str, Path]] = None) -> Path:
        """Render the run and write it to ``out_dir`` (or the configured directory).

        Returns:
            Path of the written file
        """
        text = self.render(run)
        directory = Path(out_dir) if out_dir is not None else Path(self.config.output_dir)
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / self.config.filename
        path.write_text(text, encoding="utf-8")
        return path

    def get_statistics(self) -> Dict[str, int]:
        """Statistics of the most recent emission (empty when unsupported)."""
        return {}

    def get_format_name(self) -> str:
        """Get the name of the format this emitter targets.

        Returns:
            Format name string (e.g., 'terraform')
        """
        # Default implementation extracts from class name
        class_name = self.__class__.__name__
        if class_name.endswith("Emitter"):
            return class_name[:-7].lower()
        return class_name.lower()
