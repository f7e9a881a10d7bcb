"""Load platform sync batches from JSON documents."""

from __future__ import annotations

import json
from collections.abc import Mapping
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING, cast

from pydantic import ValidationError as PydanticValidationError

from usersync.domain.errors import ValidationError

from .schema import PlatformUserBatch, PlatformUserPayload
from .translator import rejected_record, to_record

if TYPE_CHECKING:
    from usersync.domain.records import PlatformUserRecord

log = getLogger(__name__)


def parse_batch(raw: str | bytes) -> list[PlatformUserRecord]:
    """Parse a JSON array of users, or an object with a ``users`` array.

    Only a broken envelope fails the whole document. An entry that is not a
    readable user becomes a rejected record so the batch can report it.
    """

    try:
        document = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Platform batch is not valid JSON: {exc}") from exc
    try:
        batch = PlatformUserBatch.model_validate(document)
    except PydanticValidationError as exc:
        raise ValidationError(f"Malformed platform batch: {exc}") from exc
    return [_entry_to_record(index, entry) for index, entry in enumerate(batch.users)]


def _entry_to_record(index: int, entry: object) -> PlatformUserRecord:
    try:
        payload = PlatformUserPayload.model_validate(entry)
    except PydanticValidationError as exc:
        external_id = _recover_external_id(entry)
        reason = f"batch entry {index} is malformed: {_summarize(exc)}"
        log.warning("Rejected platform entry %s (%s): %s", index, external_id, reason)
        return rejected_record(external_id, reason)
    return to_record(payload)


def _recover_external_id(entry: object) -> str | None:
    if not isinstance(entry, Mapping):
        return None
    fields = cast(Mapping[str, object], entry)
    value = fields.get("externalId", fields.get("external_id"))
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


def _summarize(exc: PydanticValidationError) -> str:
    problems: list[str] = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "entry"
        problems.append(f"{location}: {error['msg']}")
    return "; ".join(problems)


def load_batch_file(path: str | Path) -> list[PlatformUserRecord]:
    batch_path = Path(path)
    log.info("Loading platform batch from %s", batch_path)
    try:
        raw = batch_path.read_bytes()
    except OSError as exc:
        raise ValidationError(f"Cannot read batch file {batch_path}: {exc}") from exc
    return parse_batch(raw)
