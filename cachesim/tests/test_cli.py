import io
import json

import pytest

from cachesim.simulation.cli import main

SCENARIO_TRACE = 'l 0x0 4\nl 0x0 4\n'


def _run(monkeypatch, argv, trace=''):
    monkeypatch.setattr('sys.stdin', io.StringIO(trace))
    return main(argv)


def test_reports_counters_in_order(monkeypatch, capsys):
    rc = _run(monkeypatch, ['4', '1', '4', 'write-allocate', 'write-through', 'lru'], SCENARIO_TRACE)
    assert rc == 0
    assert capsys.readouterr().out.splitlines() == [
        'Total loads: 2',
        'Total stores: 0',
        'Load hits: 1',
        'Load misses: 1',
        'Store hits: 0',
        'Store misses: 0',
        'Total cycles: 102',
    ]


def test_write_back_trace_with_eviction(monkeypatch, capsys):
    rc = _run(monkeypatch, ['4', '1', '4', 'write-allocate', 'write-back', 'fifo'],
              's 0x0 4\nl 0x10 4\n')
    assert rc == 0
    out = capsys.readouterr().out
    assert 'Store misses: 1' in out
    assert 'Total cycles: 302' in out


@pytest.mark.parametrize('argv,message', [
    (['3', '1', '4', 'write-allocate', 'write-through', 'lru'], 'number of sets'),
    (['4', '5', '4', 'write-allocate', 'write-through', 'lru'], 'blocks in each set'),
    (['4', '1', '2', 'write-allocate', 'write-through', 'lru'], 'at least 4'),
    (['4', '1', '4', 'allocate', 'write-through', 'lru'], 'write-allocate or no-write-allocate'),
    (['4', '1', '4', 'write-allocate', 'through', 'lru'], 'write-through or write-back'),
    (['4', '1', '4', 'write-allocate', 'write-through', 'mru'], 'lru or fifo'),
    (['4', '1', '4', 'no-write-allocate', 'write-back', 'lru'], 'invalid combination'),
])
def test_configuration_errors_exit_1(monkeypatch, capsys, argv, message):
    rc = _run(monkeypatch, argv, SCENARIO_TRACE)
    captured = capsys.readouterr()
    assert rc == 1
    assert message in captured.err
    assert captured.out == ''


@pytest.mark.parametrize('argv', [
    ['4', '1', '4', 'write-allocate', 'write-through'],
    ['4', '1', '4', 'write-allocate', 'write-through', 'lru', 'extra'],
    ['four', '1', '4', 'write-allocate', 'write-through', 'lru'],
])
def test_bad_argument_list_exits_1(monkeypatch, argv):
    with pytest.raises(SystemExit) as excinfo:
        _run(monkeypatch, argv)
    assert excinfo.value.code == 1


def test_strict_trace_error_exits_1(monkeypatch, capsys):
    rc = _run(monkeypatch, ['4', '1', '4', 'write-allocate', 'write-through', 'lru', '--strict'],
              'l 0x0 4\nl nothex 4\n')
    assert rc == 1
    assert 'malformed trace' in capsys.readouterr().err


def test_trace_file_and_exports(tmp_path, monkeypatch, capsys):
    trace = tmp_path / 'trace.txt'
    trace.write_text(SCENARIO_TRACE, encoding='utf-8')
    out_json = tmp_path / 'out.json'
    out_csv = tmp_path / 'out.csv'
    rc = _run(monkeypatch, ['4', '1', '4', 'write-allocate', 'write-through', 'lru',
                            '--trace', str(trace), '--json', str(out_json), '--csv', str(out_csv)])
    assert rc == 0
    assert 'Total cycles: 102' in capsys.readouterr().out
    data = json.loads(out_json.read_text(encoding='utf-8'))
    assert data['stats']['load_hits'] == 1
    assert data['config']['replacement'] == 'lru'
    assert out_csv.exists()


def test_missing_trace_file_exits_1(tmp_path, monkeypatch, capsys):
    rc = _run(monkeypatch, ['4', '1', '4', 'write-allocate', 'write-through', 'lru',
                            '--trace', str(tmp_path / 'nope.txt')])
    assert rc == 1
    assert 'cannot read trace' in capsys.readouterr().err


def test_malformed_line_truncates_trace(monkeypatch, capsys, caplog):
    rc = _run(monkeypatch, ['4', '1', '4', 'write-allocate', 'write-through', 'lru'],
              'l 0x0 4\nl 0x0 4\nbogus line\nl 0x10 4\n')
    assert rc == 0
    out = capsys.readouterr().out
    assert 'Total loads: 2' in out
    assert 'Total cycles: 102' in out
    assert 'trace truncated' in caplog.text


def test_undecodable_trace_file_truncates(tmp_path, monkeypatch, capsys, caplog):
    trace = tmp_path / 'trace.bin'
    trace.write_bytes(b'l 0x0 4\nl 0x\xff 4\n')
    rc = _run(monkeypatch, ['4', '1', '4', 'write-allocate', 'write-through', 'lru',
                            '--trace', str(trace)])
    assert rc == 0
    assert 'Total loads: 1' in capsys.readouterr().out
    assert 'line 2' in caplog.text


def test_undecodable_trace_file_strict_exits_1(tmp_path, monkeypatch, capsys):
    trace = tmp_path / 'trace.bin'
    trace.write_bytes(b'l 0x0 4\nl 0x\xff 4\n')
    rc = _run(monkeypatch, ['4', '1', '4', 'write-allocate', 'write-through', 'lru',
                            '--trace', str(trace), '--strict'])
    assert rc == 1
    err = capsys.readouterr().err
    assert 'malformed trace' in err
    assert 'line 2' in err


@pytest.mark.parametrize('flag', ['--csv', '--json', '--chart'])
def test_unwritable_export_path_exits_1(tmp_path, monkeypatch, capsys, flag):
    target = tmp_path / 'nodir' / 'out'
    rc = _run(monkeypatch, ['4', '1', '4', 'write-allocate', 'write-through', 'lru',
                            flag, str(target)], SCENARIO_TRACE)
    captured = capsys.readouterr()
    assert rc == 1
    assert 'Total cycles: 102' in captured.out
    assert 'cannot write output' in captured.err
