from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional, Union

from Bio import SeqIO

from .errors import SequenceInputError
from .settings import WebSettings

logger = logging.getLogger(__name__)

TARGET_SEQ_FILENAME = "seqs.fa"
BACKGROUND_SEQ_FILENAME = "back_seqs.fa"
TF_FAMILY_FILENAME = "tf_family.txt"

SequenceSource = Union[str, bytes, Any]


def _read_upload(upload: SequenceSource) -> bytes:
    if upload is None:
        return b""
    if isinstance(upload, bytes):
        return upload
    if isinstance(upload, str):
        return upload.encode("utf-8")
    data = upload.read()
    if isinstance(data, str):
        data = data.encode("utf-8")
    return data or b""


def _upload_label(upload: SequenceSource) -> str:
    return str(getattr(upload, "filename", "") or "upload")


def _write_bytes(path: Path, content: bytes, what: str) -> Path:
    try:
        path.write_bytes(content)
    except OSError as exc:
        logger.error("Unable to write %s file %s: %s", what, path, exc)
        raise SequenceInputError(f"Unable to create {what} file {path}") from exc
    return path


def _acquire(
    method: str,
    dest: Path,
    what: str,
    empty_message: str,
    unknown_message: str,
    text: Optional[str],
    upload: SequenceSource,
) -> Path:
    if method == "paste":
        if not text:
            raise SequenceInputError(empty_message)
        return _write_bytes(dest, text.encode("utf-8"), what)

    if method == "upload":
        content = _read_upload(upload)
        if not content:
            raise SequenceInputError(f"File {_upload_label(upload)} is empty")
        return _write_bytes(dest, content, what)

    raise SequenceInputError(unknown_message)


def write_target_sequences(
    method: str,
    dest_dir: Path,
    text: Optional[str] = None,
    upload: SequenceSource = None,
) -> Path:
    """Write the user's target sequences to ``dest_dir/seqs.fa`` unchanged."""
    return _acquire(
        method,
        Path(dest_dir) / TARGET_SEQ_FILENAME,
        "target sequences",
        "Sequence input not specified",
        "Unknown sequence input method",
        text,
        upload,
    )


def write_background_sequences(
    method: str,
    dest_dir: Path,
    text: Optional[str] = None,
    upload: SequenceSource = None,
    set_key: Optional[str] = None,
    settings: Optional[WebSettings] = None,
) -> Path:
    """Produce the background sequence file.

    ``paste`` and ``upload`` are written to ``dest_dir/back_seqs.fa``;
    ``default`` resolves one of the pre-shipped sets in the data directory
    and copies nothing.
    """
    if method == "default":
        settings = settings or WebSettings.from_env()
        filename = settings.bg_seq_set_files.get(set_key or "")
        if not filename:
            raise SequenceInputError(f"Unknown background sequence set {set_key}")
        return settings.data_dir / filename

    return _acquire(
        method,
        Path(dest_dir) / BACKGROUND_SEQ_FILENAME,
        "background sequences",
        "Background sequence input not specified",
        "Unknown background sequence input method",
        text,
        upload,
    )


def write_tf_family_file(dest_dir: Path, upload: SequenceSource = None) -> Path:
    """Write an uploaded TF family list to ``dest_dir/tf_family.txt`` unchanged."""
    content = _read_upload(upload)
    if not content:
        raise SequenceInputError(f"File {_upload_label(upload)} is empty")
    return _write_bytes(Path(dest_dir) / TF_FAMILY_FILENAME, content, "TF family list")


def count_fasta_records(path: Path) -> int:
    try:
        with Path(path).open("r", encoding="utf-8", errors="ignore") as handle:
            return sum(1 for _ in SeqIO.parse(handle, "fasta"))
    except (OSError, ValueError) as exc:
        logger.warning("Could not parse FASTA file %s: %s", path, exc)
        return 0
