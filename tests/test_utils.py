import re

from sparsified_pagerank.utils import print_side_by_side_boxes, print_summary_box

ANSI = re.compile(r"\x1b\[[0-9;]*m")


def printed_lines(capsys):
    return [ANSI.sub("", line).rstrip() for line in capsys.readouterr().out.splitlines() if line.strip()]


def test_summary_box_lines_share_one_width(capsys):
    print_summary_box("Stage 3 Summary", {"Iterations": 12, "Converged pages": "3/4"}, width=30)
    lines = printed_lines(capsys)
    assert len(lines) == 6
    assert {len(line) for line in lines} == {34}
    assert lines[1] == "  | Stage 3 Summary              |"
    assert lines[3] == "  | Iterations: 12               |"


def test_side_by_side_boxes_pad_the_shorter_box(capsys):
    print_side_by_side_boxes("Out", {"Min": 0, "Max": 3}, "In", {"Min": 1}, col_width=10, gap=2)
    lines = printed_lines(capsys)
    assert len(lines) == 6
    assert lines[0] == "  +----------+  +----------+"
    assert lines[4].startswith("  | Max: 3   |")
    assert lines[5] == "  +----------+"
