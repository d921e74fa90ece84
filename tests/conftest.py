import numpy as np
import pandas as pd
import pytest

from outbreak_clogit import config

N_PAIRS = 36


def raw_name(food):
    return food.replace("_", " ").title()


def build_survey():
    """
    Synthetic survey export in the raw spreadsheet layout.

    36 case/control pairs (S001..S072), plus a duplicate control for pair 12
    (S074) and three participants without a partner (S075..S077).

    ham     : cases exposed in pairs 1-10, controls in pairs 5-20
              -> 4 vs 10 discordant pairs, OR = 0.4, 10/36 cases exposed
    sprouts : every case exposed, controls in odd pairs only -> separation
    chicken : control of pair 5 answered 9 (missing)
    beef    : case of pair 6 answered 8 (unsure)
    """
    rows = []
    for i in range(1, N_PAIRS + 1):
        rows.append({"Subject ID": f"S{2*i-1:03d}", "Case ID": f"CASE-{i:02d}", "Case": 1})
        rows.append({"Subject ID": f"S{2*i:03d}",   "Case ID": f"CASE-{i:02d}", "Case": 0})
    extra = [("S074", "CASE-12", 0), ("S075", "CASE-37", 1),
             ("S076", "CASE-38", 1), ("S077", "CASE-38", 0)]
    for sid, cid, case in extra:
        rows.append({"Subject ID": sid, "Case ID": cid, "Case": case})
    df = pd.DataFrame(rows)

    pair = df["Case ID"].str[-2:].astype(int)
    is_case = df["Case"] == 1

    for k, food in enumerate(config.FOODS):
        rng = np.random.default_rng(k)
        x = rng.integers(0, 2, size=len(df))
        # guarantee discordant pairs in both directions
        x[(pair == 1).to_numpy() & is_case.to_numpy()] = 1
        x[(pair == 1).to_numpy() & ~is_case.to_numpy()] = 0
        x[(pair == 2).to_numpy() & is_case.to_numpy()] = 0
        x[(pair == 2).to_numpy() & ~is_case.to_numpy()] = 1
        df[raw_name(food)] = x

    df["Ham"] = np.where(is_case, (pair <= 10).astype(int), ((pair >= 5) & (pair <= 20)).astype(int))
    df["Sprouts"] = np.where(is_case, 1, (pair % 2 == 1).astype(int))
    df.loc[(pair == 5) & ~is_case & (df["Subject ID"] == "S010"), "Chicken"] = 9
    df.loc[(pair == 6) & is_case, "Beef"] = 8
    return df


@pytest.fixture
def survey():
    return build_survey()


@pytest.fixture
def survey_csv(tmp_path, survey):
    path = tmp_path / "food_survey.csv"
    survey.to_csv(path, index=False)
    return path


@pytest.fixture
def cleaned(survey):
    from outbreak_clogit.load import load_clean
    return load_clean(survey)


@pytest.fixture
def long(cleaned):
    from outbreak_clogit.exposures import select_exposures, to_long
    return to_long(select_exposures(cleaned))
