import asyncio
import os
import zipfile

import pytest

from zipcli import ConfigError, ModeError, NoEntriesError, ZipCLI, __version__
from zipcli.cli import main, make_parser

from conftest import names


@pytest.fixture
def home(tree, monkeypatch):
    # config searches stop here
    monkeypatch.setenv('HOME', str(tree.parent))
    monkeypatch.setenv('USERPROFILE', str(tree.parent))
    return tree.parent


def test_add_to_file(home, capsys):
    assert main(['add', 'src', '-o', 'file.zip']) == 0

    assert 'src/sub/c.txt' in names('file.zip')
    out = capsys.readouterr().out
    assert out == 'Done compressing 4 files to "%s".\n' % os.path.abspath('file.zip')


def test_options_before_the_command(home):
    assert main(['-l', '0', '-i', '*.map', '-q', 'add', 'src', '-o', 'file.zip']) == 0

    assert 'src/b.js.map' not in names('file.zip')
    with zipfile.ZipFile('file.zip') as archive:
        assert archive.getinfo('src/a.js').compress_type == zipfile.ZIP_STORED


def test_repeated_ignore_options(home):
    assert main(['add', 'src', '-o', 'file.zip', '-i', '*.map', '-i', 'sub']) == 0
    assert names('file.zip') == ['src/', 'src/a.js', 'src/b.js', 'src/empty/']


def test_quiet_prints_nothing(home, capsys):
    assert main(['add', 'src', '-o', 'file.zip', '-q']) == 0
    assert capsys.readouterr().out == ''


def test_errors_exit_with_status_one(home, capsys):
    with open('file.zip', 'wb') as file:
        file.write(b'old')

    assert main(['add', 'src', '-o', 'file.zip']) == 1
    assert capsys.readouterr().err == 'Error: File "%s" already exists.\n' % os.path.abspath('file.zip')


def test_extract_to_folder(home, capsys):
    main(['add', 'src', '-o', 'file.zip', '-q'])

    assert main(['extract', 'file.zip', '-o', 'out']) == 0

    assert os.path.isfile(os.path.join('out', 'src', 'sub', 'c.txt'))
    out = capsys.readouterr().out
    assert out == 'Done extracting 4 files to "%s".\n' % os.path.abspath('out')


def test_config_file_drives_the_run(home, capsys):
    (home / '.zipclirc').write_text('mode: add\n'
                                    'entries: [src]\n'
                                    'outputEntry: conf.zip\n'
                                    "ignoreEntries: ['*.map']\n")

    assert main([]) == 0

    assert 'src/b.js.map' not in names('conf.zip')
    assert 'Done compressing 3 files' in capsys.readouterr().out


def test_config_file_is_found_from_a_subfolder(home):
    (home / '.zipclirc').write_text('mode: add\nentries: [src]\noutputEntry: conf.zip\n')
    os.chdir(home / 'src' / 'sub')

    assert main(['-q']) == 0
    assert os.path.isfile(home / 'conf.zip')


def test_terminal_options_beat_the_config_file(home):
    (home / '.zipclirc').write_text('mode: add\nentries: [src]\noutputEntry: conf.zip\n')

    assert main(['-q', '-o', 'other.zip']) == 0

    assert os.path.isfile('other.zip')
    assert not os.path.exists('conf.zip')


def test_noconfig_ignores_the_config_file(home):
    (home / '.zipclirc').write_text('mode: add\nentries: [src]\noutputEntry: conf.zip\n')

    assert main(['--noconfig', 'add', 'src/a.js', '-o', 'a.zip', '-q']) == 0
    assert names('a.zip') == ['a.js']


def test_explicit_config_file(home):
    (home / 'release.yml').write_text('mode: add\nentries: [src/sub]\noutputEntry: rel.zip\n')

    assert main(['-c', 'release.yml', '-q']) == 0
    assert names('rel.zip') == ['sub/', 'sub/c.txt']


def test_missing_explicit_config_file_fails(home, capsys):
    assert main(['-c', 'missing.yml']) == 1
    assert "Can't read configuration file" in capsys.readouterr().err


def test_no_command_and_no_config_prints_usage(home, capsys):
    assert main([]) == 1

    err = capsys.readouterr().err
    assert 'usage: zipcli' in err
    assert 'Error: No configuration file and no mode specified.' in err


def test_config_file_with_bad_mode(home, capsys):
    (home / '.zipclirc').write_text('entries: [src]\n')

    assert main([]) == 1
    assert 'No or invalid mode in configuration file defined.' in capsys.readouterr().err


def test_version(capsys):
    with pytest.raises(SystemExit) as exit:
        main(['--version'])
    assert exit.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_unset_flags_are_not_passed_on():
    args = vars(make_parser().parse_args(['add', 'x']))
    assert args == {'command': 'add', 'entries': ['x']}


def test_verbose_logs_to_stderr(home, capsys):
    assert main(['-V', '-q', '--noconfig', 'add', 'src/a.js', '-o', 'a.zip']) == 0
    assert 'zipcli/zipbuild: Adding 1 entry to ZIP file.' in capsys.readouterr().err
    main(['-q', '--noconfig', 'add', 'src/a.js', '-o', 'b.zip'])
    assert capsys.readouterr().err == ''


#
# the facade
#

def test_facade_needs_entries(home):
    cli = ZipCLI(config_file=False)
    with pytest.raises(NoEntriesError, match='No entries to add.'):
        cli.add()
    with pytest.raises(NoEntriesError, match='No entries to extract.'):
        asyncio.run(cli.extract())


def test_facade_needs_a_mode(home):
    with pytest.raises(ModeError, match='No configuration file and no mode specified.'):
        asyncio.run(ZipCLI(config_file=False).file_mode())


def test_facade_mode_without_config_file(home):
    cli = ZipCLI(config_file=False, mode='add', entries=['src/a.js'],
                 output_entry='a.zip', quiet=True)
    asyncio.run(cli.file_mode())
    assert names('a.zip') == ['a.js']


def test_facade_rejects_unknown_options():
    with pytest.raises(ConfigError):
        ZipCLI(config_file=False, colour='red')


def test_facade_survives_broken_searched_config(home):
    (home / '.zipclirc.json').write_text('{broken')
    cli = ZipCLI()
    assert cli.config_file is None


def test_plain_pyproject_in_the_project_is_left_alone(home):
    (home / 'pyproject.toml').write_text('[build-system]\nrequires = ["setuptools"]\n')

    assert main(['add', 'src/a.js', '-o', 'a.zip', '-q']) == 0
    assert names('a.zip') == ['a.js']


def test_searched_config_with_bad_options_is_only_reported(home):
    (home / '.zipclirc').write_text('mode: add\ncolour: red\n')

    cli = ZipCLI(quiet=True)

    assert cli.config_file is None
    assert cli.options.mode is None


def test_config_entry_dot_zips_the_config_folder_contents(home):
    (home / 'src' / '.zipclirc').write_text("mode: add\nentries: ['.']\noutputEntry: ../dot.zip\n")
    os.chdir(home / 'src')

    assert main(['-q']) == 0

    zipped = names(home / 'dot.zip')
    assert 'a.js' in zipped
    assert 'sub/c.txt' in zipped
    assert not any(name.startswith('src/') for name in zipped)
