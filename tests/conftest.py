"""Shared fixtures for the policy core and API tests."""

from datetime import date

import pytest
from fastapi.testclient import TestClient

from taylor_insurance.auth import UserStore
from taylor_insurance.main import create_app
from taylor_insurance.models import AutoRiskProfile, HomeRiskProfile, Vehicle
from taylor_insurance.policy_service import PolicyEngine

CURRENT_YEAR = date.today().year


def make_auto(driver_age=30, accident_count=0, vehicle_age=3, make="Honda", model="Civic"):
    return AutoRiskProfile(
        driver_age=driver_age,
        accident_count=accident_count,
        vehicle=Vehicle(make=make, model=model, year=CURRENT_YEAR - vehicle_age),
    )


def make_home(
    home_age=10,
    dwelling_type="house",
    heating_type="electric",
    location="urban",
    home_value=200000.0,
    liability_limit=1_000_000.0,
):
    return HomeRiskProfile(
        home_age=home_age,
        dwelling_type=dwelling_type,
        heating_type=heating_type,
        location=location,
        home_value=home_value,
        liability_limit=liability_limit,
    )


@pytest.fixture
def store():
    return UserStore()


@pytest.fixture
def engine(store):
    return PolicyEngine(users=store)


@pytest.fixture
def user(engine):
    return engine.register("alice", "s3cret-pass")


@pytest.fixture
def client():
    return TestClient(create_app())


@pytest.fixture
def auth_headers(client):
    response = client.post("/signup", json={"username": "bob", "password": "hunter22"})
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest.fixture
def auto_risk():
    return make_auto


@pytest.fixture
def home_risk():
    return make_home
