import os

import pytest

from zipcli import ConfigError
from zipcli import zipconfig


def test_loads_yaml(tmp_path):
    path = tmp_path / '.zipclirc'
    path.write_text('mode: add\n'
                    'entries: [dist]\n'
                    'outputEntry: dist.zip\n'
                    "ignoreEntries: ['*.map']\n"
                    'compressionLevel: 9\n')

    result = zipconfig.load(str(path))

    assert not result.isempty
    assert result.filepath == str(path)
    assert result.config['mode'] == 'add'
    assert result.config['compression_level'] == 9
    assert result.config['ignore_entries'] == ['*.map']
    assert result.config['entries'] == [os.path.join(str(tmp_path), 'dist')]
    assert result.config['output_entry'] == os.path.join(str(tmp_path), 'dist.zip')


def test_loads_json(tmp_path):
    path = tmp_path / 'zipcli.config.json'
    path.write_text('{"mode": "extract", "entries": "a.zip", "force": true}')

    result = zipconfig.load(str(path))

    assert result.config['entries'] == [os.path.join(str(tmp_path), 'a.zip')]
    assert result.config['force'] is True


def test_absolute_paths_stay_absolute(tmp_path):
    path = tmp_path / '.zipclirc.json'
    path.write_text('{"outputEntry": "/srv/out.zip"}')

    assert zipconfig.load(str(path)).config['output_entry'] == '/srv/out.zip'


def test_loads_pyproject_table(tmp_path):
    path = tmp_path / 'pyproject.toml'
    path.write_text('[project]\nname = "demo"\n\n'
                    '[tool.zipcli]\nmode = "add"\nskip-cruft = true\n')

    result = zipconfig.load(str(path))

    assert result.config == {'mode': 'add', 'skip_cruft': True}


def test_empty_file_is_empty(tmp_path):
    path = tmp_path / '.zipclirc'
    path.write_text('')
    assert zipconfig.load(str(path)).isempty


def test_unreadable_files_raise(tmp_path):
    path = tmp_path / '.zipclirc.json'
    path.write_text('{not json')

    with pytest.raises(ConfigError, match="Can't read configuration file"):
        zipconfig.load(str(path))
    with pytest.raises(ConfigError, match="Can't read configuration file"):
        zipconfig.load(str(tmp_path / 'missing.yml'))


def test_non_mapping_raises(tmp_path):
    path = tmp_path / '.zipclirc'
    path.write_text('- just\n- a list\n')
    with pytest.raises(ConfigError):
        zipconfig.load(str(path))


def test_search_walks_up_to_stopdir(tmp_path):
    deep = tmp_path / 'a' / 'b'
    deep.mkdir(parents=True)
    (tmp_path / '.zipclirc').write_text('mode: add\n')

    result = zipconfig.search(str(deep), str(tmp_path))
    assert result.filepath == str(tmp_path / '.zipclirc')

    assert zipconfig.search(str(deep), str(tmp_path / 'a')) is None


def test_search_prefers_nearest_and_skips_foreign_pyproject(tmp_path):
    sub = tmp_path / 'sub'
    sub.mkdir()
    (tmp_path / '.zipclirc').write_text('mode: extract\n')
    (sub / 'pyproject.toml').write_text('[project]\nname = "demo"\n')
    (sub / '.zipclirc.yml').write_text('mode: add\n')

    result = zipconfig.search(str(sub), str(tmp_path))

    assert result.filepath == str(sub / '.zipclirc.yml')
    assert result.config['mode'] == 'add'


def test_plain_pyproject_is_not_a_config_file(tmp_path):
    (tmp_path / 'pyproject.toml').write_text('[build-system]\nrequires = ["setuptools"]\n\n'
                                             '[project]\nname = "demo"\n')

    assert zipconfig.load(str(tmp_path / 'pyproject.toml')).isempty
    assert zipconfig.search(str(tmp_path), str(tmp_path)) is None


def test_other_toml_files_may_hold_options_at_the_top(tmp_path):
    path = tmp_path / 'release.toml'
    path.write_text('mode = "add"\ncompressionLevel = 0\n')

    assert zipconfig.load(str(path)).config == {'mode': 'add', 'compression_level': 0}
