import time
from datetime import timedelta
from pathlib import Path
from typing import List, Optional, Set
from sqlalchemy.orm import Session
from booking_auth.models.user import User
from booking_auth.storage.local_storage import MediaStorage


class AvatarReferenceService:
    """Service for matching stored avatar files against user profiles"""

    @staticmethod
    def get_referenced_paths(db: Session, media: MediaStorage) -> Set[Path]:
        """
        Paths of avatar files some user currently points at.
        References to other hosts are ignored.
        """
        referenced = set()
        rows = db.query(User.profile_image).filter(User.profile_image.isnot(None)).all()
        for (reference,) in rows:
            path = media.path_for_reference(reference)
            if path is not None:
                referenced.add(path)
        return referenced

    @staticmethod
    def get_orphaned_avatars(db: Session, media: MediaStorage,
                             grace: timedelta = timedelta(0),
                             now: Optional[float] = None) -> List[Path]:
        """
        Find stored avatars no user references.

        A file is orphaned once its owner uploads a replacement, or when
        the upload finished but the profile update never happened. Files
        modified within `grace` of `now` are skipped: an upload writes its
        file before the profile points at it.
        """
        referenced = AvatarReferenceService.get_referenced_paths(db, media)
        cutoff = (now if now is not None else time.time()) - grace.total_seconds()
        return [
            path for _, path in media.iter_avatar_files()
            if path not in referenced and path.stat().st_mtime <= cutoff
        ]


avatar_reference_service = AvatarReferenceService()
