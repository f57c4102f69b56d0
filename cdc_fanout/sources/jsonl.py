from typing import IO, Any, Iterator, Optional
import json
import os

from cdc_fanout.models.change import Change
from cdc_fanout.sources.base import ChangeBatch, ChangeSource
from cdc_fanout.utils.exceptions import ConfigurationError, DataSourceError
from cdc_fanout.utils.logger import logger


class JsonLinesChangeSource(ChangeSource):
    """
    Reads decoded change batches from a JSON-lines file.

    Each line holds one batch: ``{"position": "<int>", "changes": [...]}``.
    Positions must increase; when a line has no position its line number is
    used instead.
    """

    def __init__(self, path: Optional[str] = None, **kwargs) -> None:
        self.path = path or os.getenv("CHANGES_FILE")
        if not self.path:
            raise ConfigurationError("CHANGES_FILE is required")

        self._file: Optional[IO[str]] = None
        self._start_position: Optional[int] = None

    def connect(self) -> None:
        try:
            self._file = open(self.path, "r", encoding="utf-8")
        except OSError as e:
            raise DataSourceError(f"Failed to open {self.path}: {e}")
        logger.info(f"Reading change batches from {self.path}")

    def listen(self) -> Iterator[ChangeBatch]:
        if self._file is None:
            raise DataSourceError("Source is not connected")

        for line_number, line in enumerate(self._file, start=1):
            line = line.strip()
            if not line:
                continue

            try:
                payload = json.loads(line)
            except json.JSONDecodeError as e:
                raise DataSourceError(f"Invalid batch on line {line_number}: {e}")

            if not isinstance(payload, dict):
                raise DataSourceError(
                    f"Invalid batch on line {line_number}: expected an object"
                )

            changes = payload.get("changes", [])
            if not isinstance(changes, list):
                raise DataSourceError(
                    f"Invalid batch on line {line_number}: changes must be a list"
                )

            try:
                position = int(payload.get("position", line_number))
            except (TypeError, ValueError) as e:
                raise DataSourceError(f"Invalid position on line {line_number}: {e}")

            if self._start_position is not None and position <= self._start_position:
                logger.debug(f"Skipping batch at position {position}")
                continue

            yield ChangeBatch(
                changes=tuple(_change_from_payload(c, line_number) for c in changes),
                position=str(position),
            )

    def disconnect(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None

    def get_source_type(self) -> str:
        return "jsonl"

    def get_source_id(self) -> str:
        return os.path.abspath(self.path)

    def set_start_position(self, position: Optional[str]) -> None:
        try:
            self._start_position = int(position) if position else None
        except ValueError:
            raise DataSourceError(f"Invalid start position: {position}")


def _change_from_payload(payload: Any, line_number: int) -> Change:
    if not isinstance(payload, dict):
        raise DataSourceError(
            f"Invalid change on line {line_number}: expected an object"
        )
    return Change.from_dict(payload)
