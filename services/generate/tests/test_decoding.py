from smartnotes.generation.decoding import (
    QUESTION_LIST_KEYS,
    decode_json_response,
    locate_item_list,
)


def test_decode_plain_json() -> None:
    assert decode_json_response('{"questions": []}') == {"questions": []}
    assert decode_json_response("[1, 2]") == [1, 2]


def test_decode_recovers_object_wrapped_in_prose() -> None:
    raw = (
        'Sure! Here is the JSON: {"questions":[{"question":"Q1","questionType":"true_false"}]}'
        " Hope that helps."
    )

    decoded = decode_json_response(raw)

    assert decoded == {"questions": [{"question": "Q1", "questionType": "true_false"}]}
    assert locate_item_list(decoded, QUESTION_LIST_KEYS) == [
        {"question": "Q1", "questionType": "true_false"}
    ]


def test_decode_recovers_fenced_array() -> None:
    raw = '```json\n[{"front": "A", "back": "B"}, {"front": "C", "back": "D"}]\n```'
    assert decode_json_response(raw) == [
        {"front": "A", "back": "B"},
        {"front": "C", "back": "D"},
    ]


def test_decode_prefers_object_slice_over_array_slice() -> None:
    raw = 'Cards: [{"front": "A", "back": "B"}]'
    assert decode_json_response(raw) == {"front": "A", "back": "B"}


def test_decode_failure_returns_none() -> None:
    assert decode_json_response("I cannot help with that.") is None
    assert decode_json_response("") is None
    assert decode_json_response('{"questions": [{"question": "trunc') is None


def test_locate_prefers_candidate_keys() -> None:
    payload = {"meta": ["x"], "questions": [{"question": "Q"}]}
    assert locate_item_list(payload, QUESTION_LIST_KEYS) == [{"question": "Q"}]


def test_locate_scans_nested_wrappers() -> None:
    payload = {"data": {"result": {"quizItems": [{"question": "Q"}]}}, "title": "T"}
    assert locate_item_list(payload, QUESTION_LIST_KEYS) == [{"question": "Q"}]


def test_locate_returns_first_list_on_a_level_before_descending() -> None:
    payload = {"wrapper": {"deep": [1]}, "shallow": [2]}
    assert locate_item_list(payload, ("questions",)) == [2]


def test_locate_without_any_list() -> None:
    assert locate_item_list({"a": {"b": "c"}}, QUESTION_LIST_KEYS) == []
    assert locate_item_list("text", QUESTION_LIST_KEYS) == []
    assert locate_item_list(None, QUESTION_LIST_KEYS) == []


def test_decode_absorbs_oversized_integer_literal() -> None:
    raw = '{"questions": [{"question": "Q", "points": ' + "9" * 5000 + "}]}"
    assert decode_json_response(raw) is None


def test_decode_absorbs_deep_nesting() -> None:
    assert decode_json_response("[" * 100_000 + "]" * 100_000) is None
    assert decode_json_response('{"a": ' + "[" * 100_000 + "]" * 100_000 + "}") is None


def test_locate_stops_descending_past_depth_limit() -> None:
    payload: dict = {"questions": "not a list"}
    for _ in range(5000):
        payload = {"wrapper": payload}
    assert locate_item_list(payload, QUESTION_LIST_KEYS) == []

    shallow = {"a": {"b": {"c": [1, 2]}}}
    assert locate_item_list(shallow, QUESTION_LIST_KEYS) == [1, 2]
