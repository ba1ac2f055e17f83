import pytest

from zipcli import ConfigError, Options, ZipCLIError
from zipcli.zipoptions import canonical


def test_defaults():
    options = Options()
    assert options.compression_level == 5
    assert options.config_file is True
    assert options.ignore_entries == []
    assert options.output_entry is None
    assert not options.force and not options.dereference_links


def test_default_lists_are_not_shared():
    one, two = Options(), Options()
    one.ignore_entries.append('*.map')
    assert two.ignore_entries == []


@pytest.mark.parametrize('name, expected', [
    ('compressionLevel', 'compression_level'),
    ('compression-level', 'compression_level'),
    ('dereferenceLinks', 'dereference_links'),
    ('outputEntry', 'output_entry'),
    ('skipCruft', 'skip_cruft'),
    ('level', 'compression_level'),
    ('force', 'force'),
])
def test_canonical_names(name, expected):
    assert canonical(name) == expected


def test_accepts_other_spellings():
    options = Options(compressionLevel=9, ignoreEntries='*.map', **{'output-entry': 'x.zip'})
    assert options.compression_level == 9
    assert options.ignore_entries == ['*.map']
    assert options.output_entry == 'x.zip'


def test_unknown_option_raises():
    with pytest.raises(ConfigError, match='Unknown option "colour"'):
        Options(colour=True)


@pytest.mark.parametrize('level', [-1, 10, 'fast', True])
def test_bad_compression_level_raises(level):
    with pytest.raises(ConfigError):
        Options(compression_level=level)


def test_bad_values_raise():
    with pytest.raises(ConfigError):
        Options(mode='update')
    with pytest.raises(ConfigError):
        Options(ignore_entries=['ok', 3])
    with pytest.raises(ConfigError):
        Options(config_file=3)


def test_errors_share_a_base():
    assert issubclass(ConfigError, ZipCLIError)


def test_merged_layers_later_wins_but_none_never_erases():
    config   = {'compressionLevel': 9, 'outputEntry': 'dist.zip', 'force': True}
    terminal = {'compression_level': 1, 'output_entry': None}

    options = Options.merged(config, terminal)

    assert options.compression_level == 1
    assert options.output_entry == 'dist.zip'
    assert options.force is True


def test_asdict_and_equality():
    options = Options(force=True)
    assert Options(**options.asdict()) == options
    assert 'force=True' in repr(options)
