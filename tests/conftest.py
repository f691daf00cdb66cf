import pytest

from emi_calc_web.app import create_app

ENV_VARS = (
    "EMI_CALC_CURRENCY_SYMBOL",
    "EMI_CALC_ROUNDING_PLACES",
    "EMI_CALC_SETTLE_FINAL",
    "EMI_CALC_SCENARIO_DATABASE_URL",
    "EMI_CALC_MAX_SCENARIOS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "scenario_database_url": f"sqlite:///{tmp_path / 'scenarios.sqlite3'}",
            "secret_key": "test-secret",
            "max_scenarios": 3,
        }
    )
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()
