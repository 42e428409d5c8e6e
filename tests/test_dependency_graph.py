"""Dependency graph checks: dangling references, cycles, critical path and
step re-sequencing."""

from conftest import make_step

from template_advisor.services.dependency_graph import (
    critical_path,
    detect_cycles,
    find_missing_dependencies,
    find_self_dependencies,
    optimize_sequence,
    validate_dependencies,
)


def test_valid_chain_has_no_missing_dependencies():
    steps = [make_step("1"), make_step("2", ["1"]), make_step("3", ["1", "2"])]
    assert validate_dependencies(steps)
    assert find_missing_dependencies(steps) == {}


def test_dangling_reference_is_reported_per_step():
    steps = [make_step("1"), make_step("2", ["1", "9"]), make_step("3", ["8"])]
    assert not validate_dependencies(steps)
    assert find_missing_dependencies(steps) == {"2": ["9"], "3": ["8"]}


def test_empty_collection_is_valid_and_acyclic():
    assert validate_dependencies([])
    assert not detect_cycles([])
    assert critical_path([]) == []
    assert optimize_sequence([]) == []


def test_two_step_cycle_detected():
    steps = [make_step("1", ["2"]), make_step("2", ["1"])]
    assert detect_cycles(steps)


def test_longer_cycle_detected_behind_acyclic_prefix():
    steps = [
        make_step("0"),
        make_step("1", ["0", "3"]),
        make_step("2", ["1"]),
        make_step("3", ["2"]),
    ]
    assert detect_cycles(steps)


def test_self_loop_counts_as_cycle():
    steps = [make_step("1", ["1"])]
    assert detect_cycles(steps)
    assert find_self_dependencies(steps) == ["1"]


def test_diamond_is_not_a_cycle():
    steps = [
        make_step("a"),
        make_step("b", ["a"]),
        make_step("c", ["a"]),
        make_step("d", ["b", "c"]),
    ]
    assert not detect_cycles(steps)


def test_dangling_reference_does_not_count_as_cycle():
    steps = [make_step("1", ["missing"]), make_step("2", ["1"])]
    assert not detect_cycles(steps)


def test_long_chain_does_not_hit_recursion_limit():
    steps = [make_step("0")] + [make_step(str(i), [str(i - 1)]) for i in range(1, 5000)]
    assert not detect_cycles(steps)


def test_critical_path_is_starts_then_ends():
    steps = [
        make_step("a"),
        make_step("b", ["a"]),
        make_step("c", ["b"]),
        make_step("x"),
    ]
    path = [s.id for s in critical_path(steps)]
    # "x" is both a start and an end step and appears once
    assert path == ["a", "x", "c"]


def test_optimize_places_critical_steps_first_then_by_dependency_count():
    steps = [
        make_step("d", ["b", "c"]),
        make_step("b", ["a"]),
        make_step("a"),
        make_step("c", ["a"]),
    ]
    ordered = optimize_sequence(steps)
    assert [s.id for s in ordered] == ["a", "d", "b", "c"]
    assert [s.critical_path for s in ordered] == [True, True, False, False]


def test_optimize_first_step_has_no_dependencies_and_last_has_some():
    steps = [make_step("1"), make_step("2", ["1"]), make_step("3", ["2"]), make_step("4", ["2", "3"])]
    ordered = optimize_sequence(steps)
    assert ordered[0].dependencies == []
    assert ordered[-1].dependencies


def test_optimize_is_stable_and_does_not_mutate_input():
    steps = [make_step("s1"), make_step("s2"), make_step("s3")]
    ordered = optimize_sequence(steps)
    assert [s.id for s in ordered] == ["s1", "s2", "s3"]
    assert all(s.critical_path for s in ordered)
    assert not any(s.critical_path for s in steps)
    assert ordered[0] is not steps[0]
