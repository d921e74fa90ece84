import pandas as pd
import pytest

from outbreak_clogit import config
from outbreak_clogit.errors import SchemaError, StrataError
from outbreak_clogit.load import (check_strata, load_clean, normalize_columns,
                                  read_survey, stratum_from_case_id)


def test_normalize_columns():
    df = pd.DataFrame(columns=["Subject ID", " Case ", "Ice Cream", "Bean-Sprouts?"])
    assert list(normalize_columns(df).columns) == ["subject_id", "case", "ice_cream", "bean_sprouts"]


@pytest.mark.parametrize("value, expected", [("CASE-07", 7), ("C12", 12), (3, 3), ("case 36 ", 36)])
def test_stratum_from_case_id(value, expected):
    assert stratum_from_case_id(value) == expected


def test_stratum_from_case_id_without_digits():
    with pytest.raises(SchemaError):
        stratum_from_case_id("CASE-A")


def test_load_clean_keeps_matched_pairs_only(survey):
    df = load_clean(survey)
    assert len(df) == 72
    assert df["stratum"].nunique() == config.EXPECTED_STRATA
    assert not df["subject_id"].isin(config.EXCLUDED_IDS | {config.DUPLICATE_CONTROL_ID}).any()


def test_every_stratum_has_one_case_and_one_control(cleaned):
    per_stratum = cleaned.groupby("stratum")["case"].agg(["size", "sum"])
    assert (per_stratum["size"] == 2).all()
    assert (per_stratum["sum"] == 1).all()


def test_load_clean_from_csv(survey_csv):
    df = load_clean(survey_csv)
    assert df["stratum"].nunique() == 36


def test_duplicate_control_left_in_fails(survey):
    with pytest.raises(StrataError, match="12"):
        load_clean(survey, duplicate_control_id=None)


def test_unexpected_stratum_count_fails(survey):
    with pytest.raises(StrataError, match="expected 35"):
        load_clean(survey, expected_strata=35)


def test_missing_food_column_fails(survey):
    with pytest.raises(SchemaError, match="melon"):
        load_clean(survey.drop(columns=["Melon"]))


def test_text_in_food_column_fails(survey):
    survey["Rice"] = survey["Rice"].astype(object)
    survey.loc[0, "Rice"] = "yes"
    with pytest.raises(SchemaError, match="rice"):
        load_clean(survey)


def test_na_spellings_become_missing(survey):
    survey["Rice"] = survey["Rice"].astype(object)
    survey.loc[0, "Rice"] = "NA"
    df = load_clean(survey)
    assert df.loc[df["subject_id"] == "S001", "rice"].isna().all()


def test_case_flag_must_be_binary(survey):
    survey.loc[0, "Case"] = 2
    with pytest.raises(SchemaError):
        load_clean(survey)


def test_read_survey_rejects_unknown_type(tmp_path):
    path = tmp_path / "survey.json"
    path.write_text("{}")
    with pytest.raises(SchemaError):
        read_survey(path)


def test_check_strata_reports_unpaired():
    df = pd.DataFrame({"stratum": [1, 1, 2], "case": [1, 0, 1]})
    with pytest.raises(StrataError, match=r"\[2\]"):
        check_strata(df, expected=None)


def test_load_clean_from_xlsx(survey, tmp_path):
    path = tmp_path / "food_survey.xlsx"
    survey.to_excel(path, index=False)
    df = load_clean(path)
    assert len(df) == 72
    assert df["stratum"].nunique() == 36


def test_read_survey_rejects_legacy_xls(tmp_path):
    path = tmp_path / "food_survey.xls"
    path.write_bytes(b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 512)
    with pytest.raises(SchemaError, match="food_survey.xls"):
        read_survey(path)
