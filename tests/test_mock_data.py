import json

import pytest

from sql_genius.core.mock_data import PARSE_ERROR_MESSAGE, DataFormatError, parse_mock_data

from conftest import GMAIL_ROWS


def test_parse_valid_rows():
    ds = parse_mock_data(json.dumps(GMAIL_ROWS))
    assert 3 <= len(ds.rows) <= 7
    assert ds.columns == ["id", "name", "email"]
    assert ds.is_consistent
    assert ds.inconsistency_warning() is None
    assert all(set(r) == {"id", "name", "email"} for r in ds.rows)


def test_to_frame_matches_rows():
    df = parse_mock_data(json.dumps(GMAIL_ROWS)).to_frame()
    assert list(df.columns) == ["id", "name", "email"]
    assert df.shape == (3, 3)
    assert df.loc[1, "email"] == "alan@gmail.com"


def test_fenced_json_is_accepted():
    ds = parse_mock_data("```json\n" + json.dumps(GMAIL_ROWS) + "\n```")
    assert len(ds.rows) == 3


@pytest.mark.parametrize(
    "text",
    ["not json", "[{'id': 1}]", "", '{"id": 1}', "[1, 2, 3]", '[{"id": 1}, "x"]'],
)
def test_invalid_mock_data_raises_data_format_error(text):
    with pytest.raises(DataFormatError, match="Failed to parse mock data"):
        parse_mock_data(text)
    assert PARSE_ERROR_MESSAGE.endswith("The generated data was not valid JSON.")


def test_jagged_rows_are_flagged_not_rejected():
    ds = parse_mock_data(json.dumps([{"id": 1, "name": "a"}, {"id": 2, "email": "b@x.io"}]))
    assert not ds.is_consistent
    assert ds.columns == ["id", "name", "email"]
    assert "same columns" in ds.inconsistency_warning()

    df = ds.to_frame()
    assert df.shape == (2, 3)
    assert df["email"].isna().iloc[0]


def test_nested_values_become_text():
    ds = parse_mock_data('[{"id": 1, "tags": ["a", "b"], "meta": {"k": null}}]')
    assert ds.rows[0] == {"id": 1, "tags": '["a","b"]', "meta": '{"k":null}'}


def test_empty_array_is_an_empty_dataset():
    ds = parse_mock_data("[]")
    assert ds.rows == [] and ds.columns == [] and ds.is_consistent
