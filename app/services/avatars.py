"""Avatar storage: decode base64 data URIs and keep an original plus a thumbnail."""

from __future__ import annotations

import base64
import binascii
import io
import logging
import re
import uuid
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from app.core.exceptions import AvatarError, NotFoundError
from app.models.user import AVATAR_DATA_URI_PATTERN

logger = logging.getLogger(__name__)

DATA_URI_PATTERN = re.compile(AVATAR_DATA_URI_PATTERN)

AVATAR_VARIANTS = ("original", "thumbnail")

# Image type from the data URI -> file extension.
EXTENSIONS = {"jpeg": "jpg", "svg+xml": "svg"}


def parse_data_uri(value: str) -> tuple[str, bytes]:
    """Return (image type, decoded bytes) for data:image/<type>;base64,<payload>."""
    match = DATA_URI_PATTERN.match(value.strip())
    if match is None:
        raise AvatarError("Avatar must be a data:image/<type>;base64 URI.")
    image_type = match.group(1).lower()
    try:
        payload = base64.b64decode(match.group(2), validate=True)
    except (binascii.Error, ValueError) as e:
        raise AvatarError("Avatar payload is not valid base64.") from e
    if not payload:
        raise AvatarError("Avatar payload is empty.")
    return image_type, payload


class AvatarStorage:
    """
    Files live at <root>/<user id>/<variant>@<filename>.

    Only the generated filename is stored on the user; URLs are composed by
    User.avatar_view().
    """

    def __init__(self, root: str | Path, thumbnail_size: int = 128) -> None:
        self.root = Path(root)
        self.thumbnail_size = thumbnail_size

    def store(self, user_id: str, data_uri: str) -> str:
        """Decode data_uri, write both variants and return the new filename."""
        image_type, payload = parse_data_uri(data_uri)
        try:
            image = Image.open(io.BytesIO(payload))
            image.load()
        except (UnidentifiedImageError, OSError) as e:
            raise AvatarError("Avatar is not a readable image.") from e

        image_format = image.format or image_type.upper()
        filename = f"{uuid.uuid4().hex}.{EXTENSIONS.get(image_type, image_type)}"
        directory = self.root / user_id
        directory.mkdir(parents=True, exist_ok=True)

        (directory / f"original@{filename}").write_bytes(payload)
        thumbnail = image.copy()
        thumbnail.thumbnail((self.thumbnail_size, self.thumbnail_size))
        thumbnail.save(directory / f"thumbnail@{filename}", format=image_format)

        logger.info(
            "Avatar stored",
            extra={"user_id": user_id, "avatar_filename": filename, "bytes": len(payload)},
        )
        return filename

    def path_for(self, user_id: str, variant: str, filename: str) -> Path:
        """Path of a stored variant; NotFoundError for unknown variants or unsafe names."""
        if variant not in AVATAR_VARIANTS:
            raise NotFoundError(f"Unknown avatar variant '{variant}'.")
        if not filename or "/" in filename or "\\" in filename or filename.startswith("."):
            raise NotFoundError("Avatar not found.")
        if "/" in user_id or user_id.startswith("."):
            raise NotFoundError("Avatar not found.")
        return self.root / user_id / f"{variant}@{filename}"

    def delete(self, user_id: str, filename: str) -> None:
        for variant in AVATAR_VARIANTS:
            self.path_for(user_id, variant, filename).unlink(missing_ok=True)
