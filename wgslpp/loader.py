"""Source loaders: turn an include target into shader text."""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Mapping, Protocol

from wgslpp.errors import LoadFailure

logger = logging.getLogger(__name__)


class SourceLoader(Protocol):
    def resolve(self, target: str) -> str:
        """Return the canonical key for an include target."""
        ...

    def read(self, key: str) -> str:
        """Return the text for a resolved key or raise LoadFailure."""
        ...


class FileSourceLoader:
    """Reads shader files from disk.

    Relative targets are resolved against *base_dir* (the current working
    directory when omitted). Keys are absolute paths, so ``a.wgsl`` and
    ``./a.wgsl`` name the same file for cycle detection.
    """

    def __init__(self, base_dir: str | Path | None = None, encoding: str = "utf-8"):
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self.encoding = encoding

    def resolve(self, target: str) -> str:
        path = Path(target)
        if not path.is_absolute():
            path = self.base_dir / path
        return str(path.resolve())

    def read(self, key: str) -> str:
        logger.debug("reading %s", key)
        try:
            return Path(key).read_text(encoding=self.encoding)
        except FileNotFoundError as e:
            raise LoadFailure(key) from e
        except (OSError, UnicodeDecodeError) as e:
            raise LoadFailure(key, str(e)) from e


class DictSourceLoader:
    """Serves sources from an in-memory mapping of name -> text."""

    def __init__(self, sources: Mapping[str, str]):
        self.sources = dict(sources)

    def resolve(self, target: str) -> str:
        return target

    def read(self, key: str) -> str:
        if key not in self.sources:
            raise LoadFailure(key)
        return self.sources[key]
