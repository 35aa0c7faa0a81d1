import json
import os
import subprocess
import sys
from pathlib import Path

import pytest

from dashfusion.cli import EXIT_CONFIG, EXIT_INPUT, EXIT_INTERNAL, EXIT_OK, EXIT_OUTPUT, main
from dashfusion.errors import LayoutEncodeError

ROOT = Path(__file__).resolve().parent.parent
SCRIPT = ROOT / 'scripts' / 'merge_dashboards.py'


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for k in list(os.environ):
        if k.startswith('DASHFUSION_'):
            monkeypatch.delenv(k)


def write_json(path, obj):
    path.write_text(json.dumps(obj), encoding='utf-8')
    return str(path)


@pytest.fixture()
def inputs(tmp_path):
    base = write_json(tmp_path / 'base.json', {
        'uid': 'svc', 'title': 'Service', 'schemaVersion': 39,
        'panels': [
            {'id': 1, 'title': 'CPU', 'type': 'graph', 'gridPos': {'h': 8, 'w': 12, 'x': 0, 'y': 0}},
            {'id': 2, 'title': 'Network', 'type': 'row', 'gridPos': {'h': 1, 'w': 24, 'x': 0, 'y': 8}},
            {'id': 3, 'title': 'RX', 'type': 'graph', 'gridPos': {'h': 6, 'w': 12, 'x': 0, 'y': 9}},
        ],
    })
    src1 = write_json(tmp_path / 'src1.json', {'title': 'CPU', 'type': 'graph', 'id': 77, 'description': 'v2'})
    src2 = write_json(tmp_path / 'src2.json', [
        {'title': 'Storage', 'type': 'row', 'gridPos': {'h': 1, 'w': 24, 'x': 0, 'y': 0}},
        {'title': 'IOPS', 'type': 'stat', 'gridPos': {'h': 4, 'w': 6, 'x': 0, 'y': 1}},
    ])
    return tmp_path, base, [src1, src2]


def test_merge_to_file(inputs):
    tmp_path, base, sources = inputs
    out = tmp_path / 'merged.json'
    rc = main(['-d', base, '-p', *sources, '-o', str(out)])
    assert rc == EXIT_OK
    merged = json.loads(out.read_text(encoding='utf-8'))
    assert merged['uid'] == 'svc' and merged['schemaVersion'] == 39
    titles = [p['title'] for p in merged['panels']]
    assert titles == ['CPU', 'Network', 'RX', 'Storage', 'IOPS']
    cpu = merged['panels'][0]
    assert cpu['id'] == 1 and cpu['description'] == 'v2'


def test_top_flag_places_new_groups_first(inputs):
    tmp_path, base, sources = inputs
    out = tmp_path / 'merged.json'
    assert main(['-d', base, '-p', *sources, '-o', str(out), '--top']) == EXIT_OK
    titles = [p['title'] for p in json.loads(out.read_text(encoding='utf-8'))['panels']]
    assert titles == ['CPU', 'Storage', 'IOPS', 'Network', 'RX']


def test_stdout_output_and_compact_indent(inputs, capsys):
    _, base, sources = inputs
    assert main(['--dashboard', base, '--panels', sources[0], '--indent', '0']) == EXIT_OK
    out = capsys.readouterr().out
    assert out.count('\n') == 1
    assert json.loads(out)['panels'][0]['description'] == 'v2'


def test_summary_and_metrics_file(inputs, capsys):
    tmp_path, base, sources = inputs
    metrics_path = tmp_path / 'fusion.prom'
    rc = main(['-d', base, '-p', *sources, '-o', str(tmp_path / 'm.json'),
               '--summary', '--metrics-file', str(metrics_path)])
    assert rc == EXIT_OK
    err = capsys.readouterr().err
    assert 'Panels matched' in err and 'Storage' in err
    assert 'dashfusion_merge_runs_total' in metrics_path.read_text(encoding='utf-8')


def test_malformed_dashboard_exits_without_output(tmp_path, capsys):
    base = write_json(tmp_path / 'base.json', {'panels': {'not': 'a list'}})
    src = write_json(tmp_path / 'src.json', {'title': 'A', 'type': 'stat'})
    out = tmp_path / 'merged.json'
    assert main(['-d', base, '-p', src, '-o', str(out)]) == EXIT_INPUT
    assert not out.exists()
    assert 'dashfusion: error:' in capsys.readouterr().err


def test_missing_panel_source(inputs):
    tmp_path, base, _ = inputs
    assert main(['-d', base, '-p', str(tmp_path / 'missing.json')]) == EXIT_INPUT


def test_bad_gridpos_is_input_error(tmp_path):
    base = write_json(tmp_path / 'base.json', {'panels': [{'title': 'A', 'type': 'stat', 'gridPos': {'w': 'wide'}}]})
    src = write_json(tmp_path / 'src.json', {'title': 'A', 'type': 'stat'})
    assert main(['-d', base, '-p', src, '-o', str(tmp_path / 'o.json')]) == EXIT_INPUT


def test_bad_config_exit_code(inputs):
    tmp_path, base, sources = inputs
    cfg = tmp_path / 'bad.yml'
    cfg.write_text('indent: lots\n', encoding='utf-8')
    assert main(['-d', base, '-p', *sources, '--config', str(cfg)]) == EXIT_CONFIG


def test_unwritable_output(inputs):
    tmp_path, base, sources = inputs
    blocker = tmp_path / 'blocker'
    blocker.write_text('x', encoding='utf-8')
    assert main(['-d', base, '-p', *sources, '-o', str(blocker / 'out.json')]) == EXIT_OUTPUT


def test_layout_encode_failure_is_internal(inputs, monkeypatch, capsys):
    tmp_path, base, sources = inputs

    def broken_merge(*args, **kwargs):
        raise LayoutEncodeError("gridPos.y must be a non-negative integer, got -1")

    monkeypatch.setattr('dashfusion.cli.merge_panels_by_group', broken_merge)
    out = tmp_path / 'merged.json'
    assert main(['-d', base, '-p', *sources, '-o', str(out)]) == EXIT_INTERNAL
    assert not out.exists()
    assert 'internal failure' in capsys.readouterr().err


def test_config_file_sets_placement(inputs):
    tmp_path, base, sources = inputs
    cfg = tmp_path / 'fusion.yml'
    cfg.write_text('place_new_at_top: true\n', encoding='utf-8')
    out = tmp_path / 'merged.json'
    assert main(['-d', base, '-p', *sources, '-o', str(out), '--config', str(cfg)]) == EXIT_OK
    titles = [p['title'] for p in json.loads(out.read_text(encoding='utf-8'))['panels']]
    assert titles[1] == 'Storage'


def test_envelope_round_trip(tmp_path):
    base = write_json(tmp_path / 'base.json', {'dashboard': {'uid': 'u', 'panels': []}, 'overwrite': True})
    src = write_json(tmp_path / 'src.json', {'title': 'A', 'type': 'stat'})
    out = tmp_path / 'merged.json'
    assert main(['-d', base, '-p', src, '-o', str(out)]) == EXIT_OK
    merged = json.loads(out.read_text(encoding='utf-8'))
    assert merged['overwrite'] is True
    assert merged['dashboard']['panels'][0]['title'] == 'A'


def test_required_arguments():
    with pytest.raises(SystemExit) as exc:
        main(['-d', 'base.json'])
    assert exc.value.code == 2


def test_script_entrypoint(inputs):
    tmp_path, base, sources = inputs
    out = tmp_path / 'merged.json'
    proc = subprocess.run([sys.executable, str(SCRIPT), '-d', base, '-p', *sources, '-o', str(out)],
                          cwd=ROOT, capture_output=True, text=True)
    assert proc.returncode == 0, proc.stderr
    assert len(json.loads(out.read_text(encoding='utf-8'))['panels']) == 5
