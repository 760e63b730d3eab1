from unittest import mock

import numpy as np
from google.api_core.exceptions import NotFound

from main import main
from sparsified_pagerank.sinks import load_vectors


GRAPH = """# Directed graph: tiny.txt
# Four pages in a ring
# Nodes: 4 Edges: 4
# FromNodeId\tToNodeId
0\t1
1\t2
2\t3
3\t0
"""

# A ring with a chord is not at its fixed point when started uniform.
SKEWED_GRAPH = GRAPH.replace("Edges: 4", "Edges: 5") + "0\t2\n"


def write_graph(tmp_path, text=GRAPH):
    path = tmp_path / "graph.txt"
    path.write_text(text)
    return str(path)


def test_main_writes_final_vector(tmp_path, capsys):
    output = tmp_path / "pagerank_output"
    code = main([write_graph(tmp_path), "-c", "0.01", "-o", str(output), "-w", "1"])
    assert code == 0
    vectors = load_vectors(str(output))
    assert len(vectors) == 1
    assert np.allclose(vectors[0], 0.25, atol=1e-3)
    assert "converged: True" in capsys.readouterr().out


def test_main_history_and_stats(tmp_path, capsys):
    output = tmp_path / "history"
    code = main([write_graph(tmp_path, SKEWED_GRAPH), "-c", "1e-12", "-m", "4", "-H", "--stats", "-v",
                 "-o", str(output)])
    assert code == 0
    assert len(load_vectors(str(output))) == 4
    out = capsys.readouterr().out
    assert "Incoming Link Statistics" in out
    assert "Iteration 4" in out


def test_main_reports_missing_graph(tmp_path, capsys):
    code = main([str(tmp_path / "nope.txt"), "-o", str(tmp_path / "out")])
    assert code == 1
    assert "graph file not found" in capsys.readouterr().out


def test_main_reports_missing_gcs_object(tmp_path, capsys):
    with mock.patch("google.cloud.storage.Client") as client_cls:
        blob = client_cls.return_value.bucket.return_value.blob.return_value
        blob.download_as_text.side_effect = NotFound("No such object: bucket/web.txt")
        code = main(["gs://bucket/web.txt", "-o", str(tmp_path / "out")])
    assert code == 1
    assert "No such object" in capsys.readouterr().out
