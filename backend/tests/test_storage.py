import io, os
from app.services.storage import MediaStore

def test_put_lays_out_user_dir_and_keeps_extension(tmp_path):
    store = MediaStore(str(tmp_path))
    stored = store.put(7, io.BytesIO(b'abc123'), 'cat.video.MP4')
    assert stored.size == 6
    assert stored.name.endswith('.MP4')
    assert os.path.dirname(stored.path) == os.path.join(str(tmp_path), '7')
    assert not os.path.exists(stored.path + '.part')

def test_put_without_extension(tmp_path):
    store = MediaStore(str(tmp_path))
    stored = store.put(1, io.BytesIO(b'x'), 'noext')
    assert '.' not in stored.name
    assert store.put(1, io.BytesIO(b'x'), None).size == 1

def test_open_and_delete_are_idempotent(tmp_path):
    store = MediaStore(str(tmp_path))
    stored = store.put(1, io.BytesIO(b'hello'), 'a.mp4')
    fh, size = store.open(stored.path)
    with fh:
        assert fh.read() == b'hello'
    assert size == 5
    store.delete(stored.path)
    store.delete(stored.path)
    store.delete(None)
    assert not store.exists(stored.path)
