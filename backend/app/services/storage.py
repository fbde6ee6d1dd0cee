"""Local filesystem media store: ``{root}/{user_no}/{uuid}{ext}``."""
import logging
import os, shutil, uuid
from dataclasses import dataclass
from typing import BinaryIO
from app.core.config import get_settings

logger = logging.getLogger(__name__)

@dataclass
class StoredFile:
    path: str
    name: str
    size: int

def _extension(original_name: str | None) -> str:
    if not original_name or '.' not in original_name:
        return ''
    return original_name[original_name.rindex('.'):]

class MediaStore:
    def __init__(self, root: str):
        self.root = root

    def put(self, user_no: int, source: BinaryIO, original_name: str | None) -> StoredFile:
        user_dir = os.path.join(self.root, str(user_no))
        os.makedirs(user_dir, exist_ok=True)
        stored_name = f"{uuid.uuid4()}{_extension(original_name)}"
        dest = os.path.abspath(os.path.join(user_dir, stored_name))
        tmp = f"{dest}.part"
        try:
            with open(tmp, 'wb') as f:
                shutil.copyfileobj(source, f)
            os.replace(tmp, dest)
        except BaseException:
            if os.path.exists(tmp):
                os.remove(tmp)
            raise
        return StoredFile(path=dest, name=stored_name, size=os.path.getsize(dest))

    def open(self, stored_path: str) -> tuple[BinaryIO, int]:
        """Open a stored file for reading. Raises FileNotFoundError when absent."""
        size = os.path.getsize(stored_path)
        return open(stored_path, 'rb'), size

    def read_bytes(self, stored_path: str) -> bytes:
        with open(stored_path, 'rb') as f:
            return f.read()

    def exists(self, stored_path: str | None) -> bool:
        return bool(stored_path) and os.path.isfile(stored_path)

    def delete(self, stored_path: str | None) -> None:
        if not stored_path:
            return
        try:
            os.remove(stored_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("failed to delete stored file %s: %s", stored_path, e)

def get_media_store() -> MediaStore:
    return MediaStore(get_settings().video_storage_dir)
