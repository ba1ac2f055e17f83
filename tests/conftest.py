import asyncio
import io
import os
import zipfile

import pytest

from zipcli import BuildService, ExtractService, Options

needs_symlinks = pytest.mark.skipif(not hasattr(os, 'symlink') or os.name == 'nt',
                                    reason='symlinks not available')


@pytest.fixture
def tree(tmp_path, monkeypatch):
    """
    A small source tree in a fresh CWD:

        src/a.js  src/b.js  src/b.js.map  src/empty/  src/sub/c.txt
    """
    src = tmp_path / 'src'
    (src / 'sub').mkdir(parents=True)
    (src / 'empty').mkdir()
    (src / 'a.js').write_bytes(b'alpha')
    (src / 'b.js').write_bytes(b'bravo')
    (src / 'b.js.map').write_bytes(b'{}')
    (src / 'sub' / 'c.txt').write_bytes(b'charlie')
    monkeypatch.chdir(tmp_path)
    return src


def build(paths, **options):
    options.setdefault('quiet', True)
    service = BuildService(Options(**options)).add([str(path) for path in paths])
    return asyncio.run(service.save())


def extract(paths, **options):
    options.setdefault('quiet', True)
    service = ExtractService(Options(**options))
    return asyncio.run(service.extract([str(path) for path in paths]))


def names(zippath):
    with zipfile.ZipFile(zippath) as archive:
        return sorted(archive.namelist())


def openzip(data):
    return zipfile.ZipFile(io.BytesIO(data))
