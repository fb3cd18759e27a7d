from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Iterable, Mapping, Optional, Sequence

from errors import DataFormatError
from models.records import READING_FIELDS, Reading, TimeWindow
from settings import get_settings

logger = logging.getLogger(__name__)

# PostgREST trims trailing zeros from fractions and may send "+00" offsets.
_FRACTION = re.compile(r"\.(\d+)")
_SHORT_OFFSET = re.compile(r"(\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)([+-]\d{2})$")


@dataclass(frozen=True)
class Dataset:
    """Immutable view of the store: all readings plus the time-filtered subset."""

    raw: tuple[Reading, ...]
    filtered: tuple[Reading, ...]
    window: TimeWindow
    cutoff: Optional[datetime] = None


class DatasetStore:
    """Owns the loaded readings and the derived time-filtered view."""

    def __init__(
        self,
        timestamp_field: str = "created_at",
        fields: Sequence[str] = READING_FIELDS,
        window: TimeWindow | str = TimeWindow.all,
    ) -> None:
        self.timestamp_field = timestamp_field
        self.fields = tuple(fields)
        self._dataset = Dataset(raw=(), filtered=(), window=TimeWindow.parse(window))

    @property
    def raw(self) -> tuple[Reading, ...]:
        return self._dataset.raw

    @property
    def filtered(self) -> tuple[Reading, ...]:
        return self._dataset.filtered

    @property
    def window(self) -> TimeWindow:
        return self._dataset.window

    def snapshot(self) -> Dataset:
        return self._dataset

    def load(self, records: Iterable[Mapping[str, Any]], now: Optional[datetime] = None) -> Dataset:
        """Replace ``raw`` with parsed records, dropping malformed ones individually."""
        readings: list[Reading] = []
        dropped = 0
        for index, record in enumerate(records):
            try:
                readings.append(parse_record(record, self.timestamp_field, self.fields, index))
            except DataFormatError as exc:
                dropped += 1
                logger.warning(
                    "Skipping reading: %s",
                    exc.reason,
                    extra={"record_index": index, "reason": exc.reason},
                )

        readings.sort(key=lambda reading: reading.timestamp)
        self._dataset = Dataset(raw=tuple(readings), filtered=(), window=self.window)
        logger.info(
            "Loaded readings",
            extra={"reading_count": len(readings), "dropped_count": dropped},
        )
        return self.apply_time_filter(self.window, now=now)

    def apply_time_filter(self, window: TimeWindow | str, now: Optional[datetime] = None) -> Dataset:
        """Recompute ``filtered`` for ``window``; ``now`` is read once per call."""
        selected = TimeWindow.parse(window)
        raw = self._dataset.raw
        duration = selected.duration
        if duration is None:
            self._dataset = Dataset(raw=raw, filtered=raw, window=selected)
        else:
            reference = now or datetime.now(timezone.utc)
            cutoff = reference - duration
            filtered = tuple(reading for reading in raw if reading.timestamp >= cutoff)
            self._dataset = Dataset(raw=raw, filtered=filtered, window=selected, cutoff=cutoff)

        logger.debug(
            "Applied time filter",
            extra={"window": selected.value, "reading_count": len(self._dataset.filtered)},
        )
        return self._dataset


def parse_record(
    record: Mapping[str, Any],
    timestamp_field: str = "created_at",
    fields: Sequence[str] = READING_FIELDS,
    index: Optional[int] = None,
) -> Reading:
    if not isinstance(record, Mapping):
        raise DataFormatError("record is not a mapping", record_index=index)
    raw_timestamp = record.get(timestamp_field)
    if raw_timestamp is None or raw_timestamp == "":
        raise DataFormatError(f"missing {timestamp_field}", record_index=index)
    try:
        timestamp = parse_timestamp(raw_timestamp)
    except ValueError as exc:
        raise DataFormatError(f"invalid {timestamp_field}", record_index=index) from exc

    values = {name: _coerce_number(name, record.get(name), index) for name in fields}
    return Reading(timestamp=timestamp, values=values)


def parse_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        if not math.isfinite(value):
            raise ValueError("Timestamp is not finite.")
        parsed = datetime.fromtimestamp(value, tz=timezone.utc)
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            raise ValueError("Timestamp is empty.")
        if candidate.endswith("Z"):
            candidate = candidate[:-1] + "+00:00"
        candidate = _normalize_iso(candidate)
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError as exc:
            raise ValueError("Invalid timestamp format") from exc
    else:
        raise ValueError(f"Unsupported timestamp type {type(value).__name__}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _normalize_iso(candidate: str) -> str:
    candidate = _FRACTION.sub(lambda match: "." + match.group(1)[:6].ljust(6, "0"), candidate, count=1)
    return _SHORT_OFFSET.sub(r"\1\2:00", candidate)


def _coerce_number(name: str, value: Any, index: Optional[int]) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.debug(
            "Treating non-numeric value as missing",
            extra={"field": name, "record_index": index},
        )
        return None
    return number if math.isfinite(number) else None


@lru_cache
def build_default_store() -> DatasetStore:
    settings = get_settings()
    return DatasetStore(timestamp_field=settings.timestamp_field, window=settings.default_window)
