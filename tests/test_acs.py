import math
import sys
from pathlib import Path

import pytest
import requests

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

# import census client
from covid_poverty.census import acs

VARIABLES = {
    "population": "B01001_001",
    "poverty_denominator": "B05010_001",
    "poverty_numerator": "B05010_002",
}

PAYLOAD = [
    ["NAME", "B01001_001E", "B01001_001M", "B05010_001E", "B05010_001M",
     "B05010_002E", "B05010_002M", "state", "county"],
    ["Autauga County, Alabama", "55639", "-555555555", "13000", "400", "1300", "150", "01", "001"],
    ["Loving County, Texas", "57", "40", "-666666666", "-222222222", "0", "11", "48", "301"],
]


class FakeResponse:
    def __init__(self, payload, status=200):
        self.payload = payload
        self.status = status

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.HTTPError(f"{self.status} Error")

    def json(self):
        return self.payload


class FakeSession:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        return self.response


def test_build_params():
    params = acs.build_params(["B01001_001"], api_key="abc")
    assert params == {"get": "NAME,B01001_001E,B01001_001M", "for": "county:*", "key": "abc"}

def test_build_params_without_key():
    params = acs.build_params(["B01001_001"], api_key=None)
    assert "key" not in params

def test_fetch_acs_request():
    session = FakeSession(FakeResponse(PAYLOAD))
    acs.fetch_acs(VARIABLES, year=2020, api_key=None, session=session)

    assert len(session.calls) == 1
    call = session.calls[0]
    assert call["url"] == "https://api.census.gov/data/2020/acs/acs5"
    assert call["params"]["for"] == "county:*"
    assert "B05010_002E" in call["params"]["get"].split(",")

def test_fetch_acs_long_form():
    session = FakeSession(FakeResponse(PAYLOAD))
    out = acs.fetch_acs(VARIABLES, year=2020, api_key=None, session=session)

    assert list(out.columns) == ["GEOID", "NAME", "variable", "estimate", "moe"]
    assert len(out) == 6
    assert set(out["GEOID"]) == {"01001", "48301"}
    autauga = out[out["GEOID"] == "01001"].set_index("variable")
    assert autauga.loc["population", "estimate"] == 55639
    assert autauga.loc["poverty_numerator", "estimate"] == 1300

def test_fetch_acs_special_values_become_nan():
    session = FakeSession(FakeResponse(PAYLOAD))
    out = acs.fetch_acs(
        VARIABLES, year=2020, api_key=None, session=session,
        special_values=[-222222222, -555555555, -666666666],
    )
    loving = out[out["GEOID"] == "48301"].set_index("variable")
    assert math.isnan(loving.loc["poverty_denominator", "estimate"])
    assert math.isnan(loving.loc["poverty_denominator", "moe"])
    autauga = out[out["GEOID"] == "01001"].set_index("variable")
    assert math.isnan(autauga.loc["population", "moe"])

def test_fetch_acs_http_error_propagates():
    session = FakeSession(FakeResponse([], status=500))
    with pytest.raises(requests.HTTPError):
        acs.fetch_acs(VARIABLES, year=2020, api_key=None, session=session)
    assert len(session.calls) == 1

def test_to_long_missing_geography_raises():
    with pytest.raises(ValueError, match="county"):
        acs.to_long([["NAME", "B01001_001E", "B01001_001M", "state"], ["x", "1", "1", "01"]],
                    {"population": "B01001_001"})
