import os, subprocess, pytest
from app.services import frames as frames_mod
from app.services.frames import FrameExtractor, FrameExtractionError

def test_extract_returns_frames_in_order(monkeypatch):
    seen = {}
    def fake_run(cmd, check, stdout, stderr):
        seen['cmd'] = cmd
        out_dir = os.path.dirname(cmd[-1])
        for n in (3, 1, 2):
            with open(os.path.join(out_dir, f"frame-{n:03d}.jpg"), 'wb') as f:
                f.write(b'jpg')
        return subprocess.CompletedProcess(cmd, 0)
    monkeypatch.setattr(frames_mod.subprocess, 'run', fake_run)
    extractor = FrameExtractor(ffmpeg_path='/opt/ffmpeg/bin/ffmpeg')
    result = extractor.extract(b'video-bytes', '.mp4')
    try:
        assert [os.path.basename(p) for p in result] == ['frame-001.jpg', 'frame-002.jpg', 'frame-003.jpg']
        assert seen['cmd'][0] == '/opt/ffmpeg/bin/ffmpeg'
        assert seen['cmd'][-3:-1] == ['-vf', 'fps=1']
        assert not any(p.endswith('.mp4') for p in os.listdir(os.path.dirname(result[0])))
    finally:
        extractor.cleanup(result)
    assert not os.path.exists(os.path.dirname(result[0]))

def test_nonzero_exit_raises_distinct_error(monkeypatch):
    def failing_run(cmd, check, stdout, stderr):
        raise subprocess.CalledProcessError(1, cmd, stderr=b'Invalid data found')
    monkeypatch.setattr(frames_mod.subprocess, 'run', failing_run)
    with pytest.raises(FrameExtractionError, match='Invalid data'):
        FrameExtractor(ffmpeg_path='ffmpeg').extract(b'garbage')

def test_missing_executable_raises_distinct_error():
    with pytest.raises(FrameExtractionError):
        FrameExtractor(ffmpeg_path='/nonexistent/bin/ffmpeg-missing').extract(b'garbage')
