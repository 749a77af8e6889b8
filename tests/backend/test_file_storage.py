import asyncio

from rentals_lib.storage import create_storage
from rentals_lib.storage.file_backend import FileStorageBackend
from rentals_lib.storage.memory_backend import MemoryStorage
from rentals_lib.store import CollectionStore


def test_set_get_remove_and_keys(tmp_path):
    b = FileStorageBackend(data_dir=tmp_path)

    async def run():
        await b.set('hb_db_users', '{"u1": {}}')
        await b.set('odd/key name', 'x')
        assert await b.get('hb_db_users') == '{"u1": {}}'
        assert sorted(await b.keys()) == ['hb_db_users', 'odd/key name']
        await b.remove('odd/key name')
        await b.remove('odd/key name')
        return await b.get('odd/key name'), await b.keys()

    missing, keys = asyncio.run(run())
    assert missing is None
    assert keys == ['hb_db_users']
    # One file per key, no temporary files left behind
    assert sorted(p.name for p in tmp_path.iterdir()) == ['hb_db_users.json']


def test_configure_changes_directory_and_extension(tmp_path):
    b = FileStorageBackend(data_dir=tmp_path / 'a')
    b.configure(data_dir=tmp_path / 'b', file_extension='yml')
    asyncio.run(b.set('k', 'v'))
    assert (tmp_path / 'b' / 'k.yml').read_text(encoding='utf-8') == 'v'


def test_collection_store_survives_new_backend_instance(tmp_path):
    async def write():
        store = CollectionStore(FileStorageBackend(data_dir=tmp_path))
        await store.upsert('users', 'u1', {'id': 'u1', 'name': 'A'})

    async def read():
        store = CollectionStore(FileStorageBackend(data_dir=tmp_path))
        return await store.get('users', 'u1')

    asyncio.run(write())
    assert asyncio.run(read()) == {'id': 'u1', 'name': 'A'}


def test_create_storage(tmp_path):
    assert isinstance(create_storage('memory'), MemoryStorage)
    fb = create_storage('file', data_dir=tmp_path, file_extension='.yml')
    assert isinstance(fb, FileStorageBackend)
    assert fb.data_dir == tmp_path / 'store'
    try:
        create_storage('redis')
    except ValueError:
        pass
    else:
        raise AssertionError('unknown backend accepted')
