import pytest

from attrition.config import CATEGORICAL_COLS
from attrition.errors import SchemaError
from attrition.loader import load_csv, parse_csv_text


def test_loads_rows_and_categoricals(hr_csv):
    dataset = parse_csv_text(hr_csv)
    assert dataset.n_rows == 240
    assert dataset.categorical_cols == CATEGORICAL_COLS
    assert "Attrition" in dataset.frame.columns


def test_missing_label_column_is_schema_error():
    text = "Age,OverTime\n30,Yes\n41,No\n"
    with pytest.raises(SchemaError, match="Attrition"):
        parse_csv_text(text)


def test_header_only_is_schema_error():
    with pytest.raises(SchemaError):
        parse_csv_text("Age,Attrition\n")


def test_all_rows_malformed_is_schema_error():
    with pytest.raises(SchemaError):
        parse_csv_text("Age,Attrition\n30\n41,No,extra\n")


def test_malformed_rows_are_skipped():
    text = "Age,Attrition,OverTime\n30,Yes,No\n31,No\n32,No,Yes,extra\n\n33,Yes,Yes\r\n"
    dataset = parse_csv_text(text)
    assert dataset.n_rows == 2
    assert list(dataset.frame["Age"]) == ["30", "33"]


def test_unknown_columns_are_discarded():
    text = "Age,Attrition,FavouriteColour,EmployeeCount\n30,Yes,blue,1\n"
    dataset = parse_csv_text(text)
    assert "FavouriteColour" not in dataset.frame.columns
    assert "EmployeeCount" in dataset.frame.columns
    assert dataset.categorical_cols == ()


def test_load_csv_reads_file(tmp_path, hr_csv):
    path = tmp_path / "hr.csv"
    path.write_text(hr_csv, encoding="utf-8")
    assert load_csv(path).n_rows == 240
