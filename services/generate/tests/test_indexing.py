from smartnotes.generation.indexing import (
    detect_one_based_indexing,
    resolve_list_index,
    resolve_list_value,
)


def test_detects_one_based_when_no_zero_and_all_in_range() -> None:
    pairs = [[1, "B"], [2, "A"]]
    assert detect_one_based_indexing(pairs, 0, 2) is True


def test_single_zero_forces_zero_based() -> None:
    pairs = [[0, 1], [2, 2]]
    assert detect_one_based_indexing(pairs, 0, 3) is False


def test_out_of_range_value_is_not_one_based() -> None:
    assert detect_one_based_indexing([[1, 0], [3, 1]], 0, 2) is False


def test_no_numeric_values_is_not_one_based() -> None:
    assert detect_one_based_indexing([["a", "b"]], 0, 2) is False
    assert detect_one_based_indexing([[1, 1]], 0, 0) is False


def test_resolve_list_index() -> None:
    assert resolve_list_index(2, 2, True) == 1
    assert resolve_list_index(1, 2, False) == 1
    assert resolve_list_index(2, 2, False) == 1
    assert resolve_list_index("0", 3, False) == 0
    assert resolve_list_index(5, 3, False) is None
    assert resolve_list_index("x", 3, False) is None


def test_resolve_list_value_falls_back_to_literal_text() -> None:
    values = ["Term1", "Term2"]
    assert resolve_list_value(1, values, True) == "Term1"
    assert resolve_list_value(" Term3 ", values, False) == "Term3"
    assert resolve_list_value(9, values, False) == "9"
    assert resolve_list_value("", values, False) is None
    assert resolve_list_value(None, values, False) is None
