import logging
import os, shutil, subprocess, tempfile
from app.core.config import get_settings

logger = logging.getLogger(__name__)

class FrameExtractionError(RuntimeError):
    """ffmpeg exited non-zero."""

class FrameExtractor:
    """Samples 1 fps JPEG frames from a whole video buffer using ffmpeg.

    The returned frame files live in a fresh temporary directory; callers clean it up
    (see ``cleanup``).
    """

    def __init__(self, ffmpeg_path: str | None = None):
        self.ffmpeg_path = ffmpeg_path or get_settings().ffmpeg_path

    def extract(self, video_bytes: bytes, suffix: str = '.mp4') -> list[str]:
        work_dir = tempfile.mkdtemp(prefix='frames-')
        src = os.path.join(work_dir, f"source{suffix}")
        with open(src, 'wb') as f:
            f.write(video_bytes)
        pattern = os.path.join(work_dir, 'frame-%03d.jpg')
        cmd = [self.ffmpeg_path, '-y', '-i', src, '-vf', 'fps=1', pattern]
        try:
            subprocess.run(cmd, check=True, stdout=subprocess.DEVNULL, stderr=subprocess.PIPE)
        except subprocess.CalledProcessError as e:
            shutil.rmtree(work_dir, ignore_errors=True)
            stderr = e.stderr.decode(errors='replace') if e.stderr else ''
            raise FrameExtractionError(f"ffmpeg exited with {e.returncode}: {stderr[-500:]}") from e
        except OSError as e:
            shutil.rmtree(work_dir, ignore_errors=True)
            raise FrameExtractionError(f"cannot run {self.ffmpeg_path}: {e}") from e
        os.remove(src)
        frames = sorted(
            os.path.join(work_dir, name)
            for name in os.listdir(work_dir)
            if name.startswith('frame-') and name.endswith('.jpg')
        )
        logger.debug("extracted %d frames into %s", len(frames), work_dir)
        return frames

    @staticmethod
    def cleanup(frames: list[str]) -> None:
        dirs = set()
        for path in frames:
            dirs.add(os.path.dirname(path))
            try:
                os.remove(path)
            except OSError:
                pass
        for d in dirs:
            try:
                os.rmdir(d)
            except OSError:
                pass
