import logging
import os

import numpy as np
import pandas as pd
import requests
from dotenv import load_dotenv

load_dotenv()

# global variables
BASE_URL = "https://api.census.gov/data"
API_KEY = os.getenv("CENSUS_API_KEY")
TIMEOUT = 60

logger = logging.getLogger(__name__)


def build_params(codes: list[str], geography: str = "county", api_key: str | None = None) -> dict:
    """query parameters for one ACS request: NAME plus estimate and margin for each code"""

    fields = ["NAME"]
    for code in codes:
        fields += [f"{code}E", f"{code}M"]
    params = {
        "get": ",".join(fields),
        "for": f"{geography}:*",
    }
    if api_key:
        params["key"] = api_key
    return params


def to_long(rows: list[list[str]], variables: dict[str, str], special_values=()) -> pd.DataFrame:
    """convert the API's header + rows payload into GEOID, NAME, variable, estimate, moe"""

    header, body = rows[0], rows[1:]
    wide = pd.DataFrame(body, columns=header)
    missing = [c for c in ("NAME", "state", "county") if c not in wide.columns]
    if missing:
        raise ValueError(f"ACS response missing columns {missing}")

    geoid = wide["state"].str.zfill(2) + wide["county"].str.zfill(3)
    frames = []
    for name, code in variables.items():
        part = pd.DataFrame({
            "GEOID": geoid,
            "NAME": wide["NAME"],
            "variable": name,
            "estimate": pd.to_numeric(wide[f"{code}E"], errors="coerce"),
            "moe": pd.to_numeric(wide[f"{code}M"], errors="coerce"),
        })
        frames.append(part)
    long_df = pd.concat(frames, ignore_index=True)

    # annotation codes stand in for suppressed or unavailable estimates
    if special_values:
        for col in ("estimate", "moe"):
            long_df[col] = long_df[col].replace(list(special_values), np.nan)

    return long_df.sort_values(["GEOID", "variable"], ignore_index=True)


def fetch_acs(
    variables: dict[str, str],
    year: int,
    geography: str = "county",
    dataset: str = "acs/acs5",
    api_key: str | None = API_KEY,
    special_values=(),
    session: requests.Session | None = None,
) -> pd.DataFrame:
    """fetch ACS estimates for every county in one request (no retry)

    variables maps output names to table codes without the E/M suffix,
    e.g. {"population": "B01001_001"}.
    """

    url = f"{BASE_URL}/{year}/{dataset}"
    params = build_params(list(variables.values()), geography, api_key)
    http = session or requests

    logger.info(f"Fetching ACS {dataset} {year} ({geography}): {list(variables)}")
    r = http.get(url, params=params, timeout=TIMEOUT)
    r.raise_for_status()
    rows = r.json()

    long_df = to_long(rows, variables, special_values)
    logger.info(f"ACS: {long_df['GEOID'].nunique()} {geography} rows, {len(long_df)} estimates")
    return long_df
