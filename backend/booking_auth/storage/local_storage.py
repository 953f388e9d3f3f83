import logging
import uuid
from pathlib import Path
from typing import Iterator, Optional
from fastapi import UploadFile
from booking_auth.core.config import settings
from booking_auth.core.errors import UpstreamFailure, ValidationError

logger = logging.getLogger(__name__)

ALLOWED_AVATAR_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
CHUNK_SIZE = 64 * 1024


class MediaStorage:
    """
    Avatar storage on local disk, served back under MEDIA_BASE_URL.

    Stands in for a hosted media service: callers only ever see the
    returned URL, which is what gets recorded on the user.
    """

    def __init__(self, upload_dir: str = settings.UPLOAD_DIR,
                 base_url: str = settings.MEDIA_BASE_URL,
                 max_size: int = settings.MAX_AVATAR_SIZE):
        self.upload_dir = Path(upload_dir)
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        self.base_url = base_url.rstrip("/")
        self.max_size = max_size

    @property
    def avatar_dir(self) -> Path:
        return self.upload_dir / "avatars"

    def save_avatar(self, file: UploadFile, user_id: int) -> str:
        """Save an uploaded image and return its public URL"""
        file_ext = Path(file.filename or "").suffix.lower()
        if file_ext not in ALLOWED_AVATAR_EXTENSIONS:
            raise ValidationError([{
                "field": "avatar",
                "message": f"File type not supported. Allowed: {', '.join(sorted(ALLOWED_AVATAR_EXTENSIONS))}",
            }])

        unique_filename = f"{uuid.uuid4()}{file_ext}"
        user_dir = self.avatar_dir / str(user_id)
        file_path = user_dir / unique_filename

        try:
            user_dir.mkdir(parents=True, exist_ok=True)
            written = 0
            with open(file_path, "wb") as f:
                while chunk := file.file.read(CHUNK_SIZE):
                    written += len(chunk)
                    if written > self.max_size:
                        break
                    f.write(chunk)
        except OSError as exc:
            logger.error(f"Could not store avatar for user {user_id}: {exc}")
            file_path.unlink(missing_ok=True)
            raise UpstreamFailure()

        if written > self.max_size:
            file_path.unlink(missing_ok=True)
            raise ValidationError([{
                "field": "avatar",
                "message": f"File is larger than {self.max_size} bytes",
            }])

        return self.reference_for(user_id, unique_filename)

    def reference_for(self, user_id: int, filename: str) -> str:
        """Public URL of a stored avatar"""
        return f"{self.base_url}/avatars/{user_id}/{filename}"

    def path_for_reference(self, reference: str) -> Optional[Path]:
        """Map a URL this storage issued back to its file, or None for foreign URLs"""
        prefix = f"{self.base_url}/avatars/"
        if not reference or not reference.startswith(prefix):
            return None
        relative = reference[len(prefix):]
        parts = relative.split("/")
        if len(parts) != 2 or any(part in ("", ".", "..") for part in parts):
            return None
        return self.avatar_dir / parts[0] / parts[1]

    def iter_avatar_files(self) -> Iterator[tuple[int, Path]]:
        """Yield (user_id, path) for every stored avatar"""
        if not self.avatar_dir.exists():
            return
        for user_dir in self.avatar_dir.iterdir():
            if not user_dir.is_dir() or not user_dir.name.isdigit():
                continue
            for file_path in user_dir.iterdir():
                if file_path.is_file():
                    yield int(user_dir.name), file_path

    def delete_file(self, file_path: Path) -> bool:
        """Delete a stored avatar"""
        if file_path.exists():
            file_path.unlink()
            return True
        return False


storage = MediaStorage()
