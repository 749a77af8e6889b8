import asyncio

import pytest

from rentals_lib.storage.memory_backend import MemoryStorage


def test_memory_basic_operations():
    async def run():
        m = MemoryStorage()

        # set/get
        await m.set('k', 'v')
        assert await m.get('k') == 'v'

        # keys
        await m.set('other', 'x')
        assert sorted(await m.keys()) == ['k', 'other']

        # remove, and removing a missing key is a no-op
        await m.remove('k')
        assert await m.get('k') is None
        await m.remove('k')

        # configure is a no-op
        assert m.configure(foo='bar') is None

    asyncio.run(run())


def test_memory_rejects_non_text_values():
    m = MemoryStorage()
    with pytest.raises(TypeError):
        asyncio.run(m.set('k', {'x': 1}))


def test_backends_satisfy_storage_protocol(tmp_path):
    from rentals_lib.services import StorageProtocol
    from rentals_lib.storage.file_backend import FileStorageBackend

    assert isinstance(MemoryStorage(), StorageProtocol)
    assert isinstance(FileStorageBackend(data_dir=tmp_path), StorageProtocol)
