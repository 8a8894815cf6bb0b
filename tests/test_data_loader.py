"""
Test Suite for Data Loader Module
=================================

Tests for schema-driven CSV loading, GameRecord and data validation.
"""

from dataclasses import FrozenInstanceError

import pytest
import numpy as np
import pandas as pd

from conftest import CSV_HEADER
from game_sales.data_loader import (
    GAME_SALES_SCHEMA, GameRecord, load_config, load_data, records_from_frame, validate_data
)
from game_sales.exceptions import SchemaError

ROWS = [
    "1,Wii Sports,Wii,2006,Sports,Nintendo,41.49,29.02,3.77,8.46,82.74",
    "2,Super Mario Bros.,NES,1985,Platform,Nintendo,29.08,3.58,6.81,0.77,40.24",
    "3,Mario Kart Wii,Wii,2008,Racing,Nintendo,15.85,12.88,3.79,3.31,35.82",
]


def write_lines(path, lines):
    path.write_text("\n".join(lines) + "\n")
    return path


class TestLoadData:
    """Tests for load_data."""

    def test_loads_every_row(self, tmp_path):
        path = write_lines(tmp_path / "data.csv", [CSV_HEADER] + ROWS)
        df = load_data(path)

        assert len(df) == 3
        assert list(df.columns) == list(GAME_SALES_SCHEMA)

    def test_values_match_source_text(self, tmp_path):
        path = write_lines(tmp_path / "data.csv", [CSV_HEADER] + ROWS)
        df = load_data(path)

        for row, line in zip(df.to_dict(orient="records"), ROWS):
            fields = line.split(",")
            assert row["rank"] == int(fields[0])
            assert row["name"] == fields[1]
            assert row["platform"] == fields[2]
            assert row["year"] == int(fields[3])
            assert row["genre"] == fields[4]
            assert row["publisher"] == fields[5]
            assert row["na_sales"] == pytest.approx(float(fields[6]))
            assert row["global_sales"] == pytest.approx(float(fields[10]))

    def test_column_dtypes(self, tmp_path):
        path = write_lines(tmp_path / "data.csv", [CSV_HEADER] + ROWS)
        df = load_data(path)

        assert df["rank"].dtype == np.int64
        assert df["year"].dtype == np.int64
        assert df["na_sales"].dtype == np.float64
        assert df["name"].dtype == object

    def test_header_text_is_not_matched(self, tmp_path):
        path = write_lines(tmp_path / "data.csv", ["a,b,c,d,e,f,g,h,i,j,k"] + ROWS)
        assert len(load_data(path)) == 3

    def test_no_header_and_custom_delimiter(self, tmp_path):
        lines = [r.replace(",", ";") for r in ROWS]
        path = write_lines(tmp_path / "data.csv", lines)
        df = load_data(path, delimiter=";", has_header=False)

        assert len(df) == 3
        assert df.loc[0, "name"] == "Wii Sports"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_data(tmp_path / "missing.csv")

    def test_row_with_too_few_fields(self, tmp_path):
        path = write_lines(
            tmp_path / "data.csv",
            [CSV_HEADER, ROWS[0], "2,Short Row,PC,2001", ROWS[2]]
        )
        with pytest.raises(SchemaError) as excinfo:
            load_data(path)
        assert excinfo.value.line == 3

    def test_row_with_too_many_fields(self, tmp_path):
        path = write_lines(
            tmp_path / "data.csv",
            [CSV_HEADER, ROWS[0], ROWS[1], ROWS[2] + ",99"]
        )
        with pytest.raises(SchemaError):
            load_data(path)

    def test_first_row_with_too_many_fields(self, tmp_path):
        path = write_lines(
            tmp_path / "data.csv",
            [CSV_HEADER, ROWS[0] + ",99", ROWS[1], ROWS[2]]
        )
        with pytest.raises(SchemaError):
            load_data(path)

    def test_unparseable_year(self, tmp_path):
        bad = ROWS[1].replace("1985", "N/A")
        path = write_lines(tmp_path / "data.csv", [CSV_HEADER, ROWS[0], bad])
        with pytest.raises(SchemaError) as excinfo:
            load_data(path)

        assert excinfo.value.column == "year"
        assert excinfo.value.line == 3

    def test_line_numbers_count_blank_lines(self, tmp_path):
        bad = ROWS[1].replace("1985", "N/A")
        path = write_lines(tmp_path / "data.csv", [CSV_HEADER, "", ROWS[0], bad])
        with pytest.raises(SchemaError) as excinfo:
            load_data(path)

        assert excinfo.value.line == 4

    def test_short_row_after_blank_lines(self, tmp_path):
        path = write_lines(
            tmp_path / "data.csv",
            [CSV_HEADER, ROWS[0], "", "", "2,Short Row,PC,2001"]
        )
        with pytest.raises(SchemaError) as excinfo:
            load_data(path)

        assert excinfo.value.line == 5

    def test_fractional_value_in_int_column(self, tmp_path):
        bad = ROWS[0].replace("2006", "2006.5")
        path = write_lines(tmp_path / "data.csv", [CSV_HEADER, bad])
        with pytest.raises(SchemaError, match="year"):
            load_data(path)

    def test_unparseable_sales(self, tmp_path):
        bad = ROWS[0].replace("41.49", "lots")
        path = write_lines(tmp_path / "data.csv", [CSV_HEADER, bad])
        with pytest.raises(SchemaError, match="na_sales"):
            load_data(path)

    def test_records_from_frame(self, tmp_path):
        path = write_lines(tmp_path / "data.csv", [CSV_HEADER] + ROWS)
        records = records_from_frame(load_data(path))

        assert len(records) == 3
        assert records[0].name == "Wii Sports"
        assert records[2].global_sales == pytest.approx(35.82)


class TestGameRecord:
    """Tests for the GameRecord dataclass."""

    @pytest.fixture
    def fields(self):
        return {
            "rank": 5, "name": "Sample Game", "platform": "PS4", "year": 2022,
            "genre": "Action", "publisher": "Sample Publisher",
            "na_sales": 41.49, "eu_sales": 29.02, "jp_sales": 3.77, "other_sales": 8.46,
        }

    def test_label_is_optional(self, fields):
        record = GameRecord.from_row(fields)
        assert record.global_sales is None

    def test_missing_field(self, fields):
        del fields["genre"]
        with pytest.raises(SchemaError, match="genre"):
            GameRecord.from_row(fields)

    def test_numeric_text_is_converted(self, fields):
        fields.update(rank="5", year="2022", na_sales="41.49")
        record = GameRecord.from_row(fields)

        assert record.rank == 5 and isinstance(record.rank, int)
        assert record.year == 2022 and isinstance(record.year, int)
        assert record.na_sales == pytest.approx(41.49)

    def test_whole_float_in_int_field(self, fields):
        fields["year"] = 2022.0
        assert GameRecord.from_row(fields).year == 2022

    def test_fractional_year_rejected(self, fields):
        fields["year"] = 2022.7
        with pytest.raises(SchemaError) as excinfo:
            GameRecord.from_row(fields)
        assert excinfo.value.column == "year"

    def test_non_numeric_rank_rejected(self, fields):
        fields["rank"] = "x"
        with pytest.raises(SchemaError) as excinfo:
            GameRecord.from_row(fields)
        assert excinfo.value.column == "rank"

    def test_non_numeric_sales_rejected(self, fields):
        fields["na_sales"] = "lots"
        with pytest.raises(SchemaError) as excinfo:
            GameRecord.from_row(fields)
        assert excinfo.value.column == "na_sales"

    def test_bool_sales_rejected(self, fields):
        fields["eu_sales"] = True
        with pytest.raises(SchemaError, match="eu_sales"):
            GameRecord.from_row(fields)

    def test_missing_label_value_is_none(self, fields):
        fields["global_sales"] = np.nan
        assert GameRecord.from_row(fields).global_sales is None

    def test_immutable(self, fields):
        record = GameRecord.from_row(fields)
        with pytest.raises(FrozenInstanceError):
            record.year = 1999

    def test_to_frame(self, fields):
        frame = GameRecord.from_row(fields).to_frame()

        assert frame.shape == (1, len(GAME_SALES_SCHEMA))
        assert list(frame.columns) == list(GAME_SALES_SCHEMA)
        assert frame.loc[0, "platform"] == "PS4"


class TestValidateData:
    """Tests for validate_data."""

    def test_clean_data_is_valid(self, games_df):
        is_valid, report = validate_data(games_df, sum_tolerance=100)
        assert is_valid
        assert report["issues"] == []

    def test_duplicates_and_negatives_reported(self, games_df):
        df = pd.concat([games_df, games_df.iloc[[0]]], ignore_index=True)
        df.loc[1, "jp_sales"] = -1.0

        is_valid, report = validate_data(df, sum_tolerance=100)

        assert not is_valid
        assert any("Duplicate" in issue for issue in report["issues"])
        assert any("jp_sales" in issue for issue in report["issues"])

    def test_regional_sum_mismatch(self):
        df = pd.DataFrame({
            "na_sales": [1.0], "eu_sales": [1.0], "jp_sales": [1.0],
            "other_sales": [1.0], "global_sales": [10.0],
        })
        is_valid, report = validate_data(df)
        assert not is_valid

    def test_strict_raises(self):
        with pytest.raises(ValueError, match="validation failed"):
            validate_data(pd.DataFrame(), strict=True)


class TestLoadConfig:
    """Tests for load_config."""

    def test_loads_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("model:\n  n_trees: 10\n")

        assert load_config(path) == {"model": {"n_trees": 10}}

    def test_missing_config(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.yaml")
