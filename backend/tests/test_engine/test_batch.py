"""Tests for concurrent batch comparison."""

from designdiff.engine.batch import BatchJob, compare_batch, summarize_batch
from designdiff.engine.errors import ExtremeDimensionMismatch
from tests.conftest import DESIGN_DOC, solid, with_block


def _jobs():
    white = solid(100, 100)
    block = with_block(white, 10, 10, 20, 20)
    return [
        BatchJob(name="login", expected=white, actual=block, design_tree=DESIGN_DOC),
        BatchJob(name="wide", expected=white, actual=solid(300, 100)),
        BatchJob(name="home", expected=white, actual=solid(100, 100)),
    ]


def test_outcomes_keep_job_order():
    outcomes, _ = compare_batch(_jobs(), max_workers=2)
    assert [o.name for o in outcomes] == ["login", "wide", "home"]
    assert [o.ok for o in outcomes] == [True, False, True]


def test_failed_job_keeps_typed_error():
    outcomes, _ = compare_batch(_jobs())
    assert isinstance(outcomes[1].error, ExtremeDimensionMismatch)
    assert outcomes[1].result is None


def test_summary_ranks_by_match():
    _, summary = compare_batch(_jobs(), max_workers=3)
    assert (summary.total, summary.succeeded, summary.failed) == (3, 2, 1)
    assert summary.average_match_percentage == 98.0
    assert [(e.name, e.match_percentage) for e in summary.ranking] == [("home", 100.0), ("login", 96.0)]
    assert summary.ranking[1].grade == "good"


def test_ties_ranked_by_name():
    white = solid(10, 10)
    jobs = [BatchJob(name=n, expected=white, actual=white) for n in ("b", "c", "a")]
    _, summary = compare_batch(jobs)
    assert [e.name for e in summary.ranking] == ["a", "b", "c"]


def test_batch_matches_single_runs():
    jobs = _jobs()
    parallel, _ = compare_batch(jobs, max_workers=3)
    serial, _ = compare_batch(jobs, max_workers=1)
    assert parallel[0].result.report.to_json() == serial[0].result.report.to_json()


def test_empty_batch():
    outcomes, summary = compare_batch([])
    assert outcomes == []
    assert summary == summarize_batch([])
    assert summary.average_match_percentage == 0.0
