import runpy
import sys
from pathlib import Path

import pandas as pd

SCRIPTS = Path(__file__).resolve().parent.parent / 'scripts'


def test_build_panel_writes_features_and_junction_summary(tmp_path, raw_two_junctions, monkeypatch, capsys):
    traffic = tmp_path / 'traffic.csv'
    raw_two_junctions.to_csv(traffic, index=False)
    out = tmp_path / 'processed' / 'features.csv.gz'

    monkeypatch.setattr(sys, 'argv', ['01_build_panel.py', '--traffic', str(traffic), '--out', str(out)])
    runpy.run_path(str(SCRIPTS / '01_build_panel.py'), run_name='__main__')

    assert len(pd.read_csv(out)) == len(raw_two_junctions)

    summary = pd.read_csv(tmp_path / 'processed' / 'junction_summary.csv')
    assert summary['Junction'].tolist() == [1, 2]
    assert (summary['n_obs'] == 144).all()
    assert 'Wrote junction summary' in capsys.readouterr().out
