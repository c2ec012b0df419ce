"""Local disk storage for uploaded files.

Files land under ``<UPLOAD_DIR>/<folder>/`` with a generated name that keeps
the original extension. Stored paths are relative to UPLOAD_DIR (for example
``covers/1718000000000-123456789.png``) and are served under ``/uploads``.
"""

import random
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath

import structlog
from protean.exceptions import ValidationError

from bookstore.utils.settings import upload_dir

logger = structlog.get_logger(__name__)

_MB = 1024 * 1024


@dataclass(frozen=True)
class UploadRule:
    folder: str
    max_bytes: int
    content_types: frozenset[str]
    allow_any_image: bool
    description: str

    def accepts(self, content_type: str | None) -> bool:
        if not content_type:
            return False
        if self.allow_any_image and content_type.startswith("image/"):
            return True
        return content_type in self.content_types


class UploadKind(Enum):
    BOOK = UploadRule(
        folder="books",
        max_bytes=50 * _MB,
        content_types=frozenset({"application/pdf", "application/epub+zip"}),
        allow_any_image=False,
        description="Only PDF and EPUB files are allowed for books",
    )
    COVER = UploadRule(
        folder="covers",
        max_bytes=10 * _MB,
        content_types=frozenset(),
        allow_any_image=True,
        description="Only image files are allowed for cover images",
    )
    AVATAR = UploadRule(
        folder="avatars",
        max_bytes=5 * _MB,
        content_types=frozenset(),
        allow_any_image=True,
        description="Only image files are allowed for avatars",
    )
    PAYMENT_PROOF = UploadRule(
        folder="payment-proofs",
        max_bytes=5 * _MB,
        content_types=frozenset({"application/pdf"}),
        allow_any_image=True,
        description="Only images and PDFs are allowed as payment proof",
    )


def ensure_upload_dirs() -> Path:
    """Create the upload root and one folder per upload kind."""
    root = upload_dir()
    for kind in UploadKind:
        (root / kind.value.folder).mkdir(parents=True, exist_ok=True)
    return root


def _generated_name(original_name: str | None) -> str:
    suffix = PurePosixPath(original_name or "").suffix.lower()
    return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{suffix}"


def store_upload(kind: UploadKind, original_name: str | None, content_type: str | None, data: bytes) -> str:
    """Validate and persist an uploaded file, returning its stored path."""
    rule = kind.value
    if not rule.accepts(content_type):
        raise ValidationError({"file": [rule.description]})
    if not data:
        raise ValidationError({"file": ["Uploaded file is empty"]})
    if len(data) > rule.max_bytes:
        raise ValidationError({"file": [f"File exceeds the {rule.max_bytes // _MB} MB limit"]})

    root = ensure_upload_dirs()
    relative = f"{rule.folder}/{_generated_name(original_name)}"
    (root / relative).write_bytes(data)

    logger.info("Stored upload", kind=kind.name, path=relative, size=len(data))
    return relative


def resolve_upload(relative: str) -> Path:
    """Map a stored path back onto the filesystem, refusing paths outside UPLOAD_DIR."""
    root = upload_dir().resolve()
    candidate = (root / relative).resolve()
    if root not in candidate.parents:
        raise ValidationError({"file": ["Invalid file path"]})
    return candidate


def remove_upload(relative: str | None) -> None:
    if not relative:
        return
    path = resolve_upload(relative)
    if path.exists():
        path.unlink()
        logger.info("Removed upload", path=relative)


def public_url(relative: str | None) -> str | None:
    return f"/uploads/{relative}" if relative else None
