"""Artifact export for comparison results and pendency reports.

Exports are written to local files and described by a DataReference
(path, sha256, size) so a rendering component can pick them up and verify
they were not modified in between.
"""

import csv
import hashlib
import io
import json
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

from core.models.refs import DataReference


def _compute_sha256(data: bytes) -> str:
    """Compute SHA256 hash of bytes."""
    return hashlib.sha256(data).hexdigest()


def _json_default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _write(data: bytes, path: Path, content_type: str, ensure_parent: bool) -> DataReference:
    if ensure_parent:
        path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    return DataReference(
        storage_uri=str(path.absolute()),
        content_hash=_compute_sha256(data),
        content_type=content_type,
        size_bytes=len(data),
        stored_at=datetime.utcnow(),
    )


def put_json(obj: Any, path: Path, ensure_parent: bool = True) -> DataReference:
    """Store a JSON-serializable object and return a DataReference.

    Pydantic models are dumped in JSON mode; Decimal values are written as
    strings so amounts survive without float rounding.

    Raises:
        TypeError: If the object is not JSON-serializable
    """
    if hasattr(obj, "model_dump"):
        obj = obj.model_dump(mode="json")

    json_bytes = json.dumps(obj, indent=2, default=_json_default).encode("utf-8")
    return _write(json_bytes, path, "application/json", ensure_parent)


def put_csv(
    rows: Iterable[Dict[str, Any]],
    path: Path,
    fieldnames: Optional[Sequence[str]] = None,
    ensure_parent: bool = True,
) -> DataReference:
    """Store tabular rows as CSV and return a DataReference.

    Column order follows `fieldnames`, or the keys of the first row.
    """
    rows = list(rows)
    if fieldnames is None:
        fieldnames = list(rows[0].keys()) if rows else []

    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=list(fieldnames), lineterminator="\n")
    writer.writeheader()
    for row in rows:
        writer.writerow({k: _csv_value(row.get(k)) for k in fieldnames})

    return _write(buffer.getvalue().encode("utf-8"), path, "text/csv", ensure_parent)


def _csv_value(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return str(value)
    return value


def get_json(ref: DataReference, validate_hash: bool = True) -> Any:
    """Retrieve a JSON artifact from a DataReference.

    Raises:
        FileNotFoundError: If artifact path doesn't exist
        ValueError: If hash validation fails
    """
    data = _read(ref, validate_hash)
    return json.loads(data.decode("utf-8"))


def get_csv(ref: DataReference, validate_hash: bool = True) -> List[Dict[str, str]]:
    """Retrieve a CSV artifact as a list of string dicts."""
    data = _read(ref, validate_hash)
    return list(csv.DictReader(io.StringIO(data.decode("utf-8"))))


def _read(ref: DataReference, validate_hash: bool) -> bytes:
    path = Path(ref.storage_uri)

    if not path.exists():
        raise FileNotFoundError(f"Artifact not found: {ref.storage_uri}")

    data = path.read_bytes()

    if validate_hash:
        actual_hash = _compute_sha256(data)
        if actual_hash != ref.content_hash:
            raise ValueError(
                f"Hash mismatch for {ref.storage_uri}: "
                f"expected {ref.content_hash}, got {actual_hash}"
            )

    return data
