"""
Persistent state record for Watch Folder Agent.

One line per tracked file::

    clip1.mp4;2024-01-01T10:00:00
    clip2.mp4;never

The record is rewritten in full on every save through a temp file and an
atomic replace, so readers never observe a half-written record.
"""

import os
import tempfile
from pathlib import Path
from typing import Iterator, List, Union

from .exceptions import PersistError
from .logger import get_logger
from .models import FileRecord, StateMapping, format_timestamp, parse_timestamp

logger = get_logger(__name__)

FIELD_SEPARATOR = ';'

RECORD_ENCODING = 'utf-8'

# Characters that would break the line/field structure of the record
_UNSAFE_NAME_CHARS = (FIELD_SEPARATOR, '\n', '\r')


def is_recordable_name(name: str) -> bool:
    """Check whether a filename can be stored in the state record.

    Names must be non-empty, free of the separator and line breaks, and
    encodable as UTF-8. Undecodable names from the filesystem arrive as
    surrogate escapes and fail the last check.
    """
    if not name or any(ch in name for ch in _UNSAFE_NAME_CHARS):
        return False
    try:
        name.encode(RECORD_ENCODING)
    except UnicodeEncodeError:
        return False
    return True


class StateStore:
    """Loads and saves the filename -> timestamp mapping."""

    def __init__(self, path: Union[str, Path]):
        """Initialize state store.

        Args:
            path: Path to the state record file
        """
        self.path = Path(path).expanduser()

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> StateMapping:
        """Read the persisted mapping.

        A missing record yields an empty mapping. Lines are split on LF
        only and decoded one at a time; lines that are not valid UTF-8, do
        not split into exactly two fields, or whose timestamp does not
        parse are skipped.

        Returns:
            Mapping of filename to last recorded timestamp
        """
        mapping: StateMapping = {}

        if not self.path.exists():
            logger.debug(f"No state record at {self.path}, starting empty")
            return mapping

        with open(self.path, 'rb') as f:
            raw_lines = f.read().split(b'\n')

        skipped = 0
        for raw in raw_lines:
            if not raw:
                continue

            try:
                line = raw.decode(RECORD_ENCODING)
            except UnicodeDecodeError:
                skipped += 1
                continue

            # Tolerate CRLF records
            if line.endswith('\r'):
                line = line[:-1]

            fields = line.split(FIELD_SEPARATOR)
            if len(fields) != 2 or not fields[0]:
                skipped += 1
                continue

            try:
                mapping[fields[0]] = parse_timestamp(fields[1])
            except ValueError:
                skipped += 1
                continue

        if skipped:
            logger.debug(f"Skipped {skipped} malformed line(s) in {self.path}")

        return mapping

    def save(self, mapping: StateMapping) -> None:
        """Replace the persisted record with the given mapping.

        Args:
            mapping: Mapping to persist

        Raises:
            PersistError: If the record could not be written. The previous
                record is left in place.
        """
        invalid = [name for name in mapping if not is_recordable_name(name)]
        if invalid:
            raise PersistError(f"Cannot record filenames: {', '.join(map(repr, invalid))}")

        lines = self._serialize(mapping)

        temp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            fd, temp_path = tempfile.mkstemp(
                prefix=f".{self.path.name}.",
                suffix='.tmp',
                dir=str(self.path.parent)
            )
            with os.fdopen(fd, 'w', encoding=RECORD_ENCODING, newline='\n') as f:
                f.writelines(lines)
                f.flush()
                os.fsync(f.fileno())

            # Atomic rename
            os.replace(temp_path, self.path)
            temp_path = None

        except (OSError, UnicodeError) as e:
            raise PersistError(f"Failed to write state record {self.path}: {e}") from e

        finally:
            if temp_path is not None:
                try:
                    os.unlink(temp_path)
                except OSError:
                    logger.warning(f"Could not remove temp file {temp_path}")

        logger.debug(f"Saved {len(mapping)} entries to {self.path}")

    @staticmethod
    def _serialize(mapping: StateMapping) -> List[str]:
        return [
            f"{name}{FIELD_SEPARATOR}{format_timestamp(mapping[name])}\n"
            for name in sorted(mapping)
        ]

    def records(self) -> Iterator[FileRecord]:
        """Yield the persisted records, sorted by name."""
        mapping = self.load()
        for name in sorted(mapping):
            yield FileRecord(name, mapping[name])
