from __future__ import annotations

import pytest
from selenium.webdriver.common.by import By

from tests.helpers import FakeDriver, FakeElement, create_fake_healing_app, serve_app


@pytest.fixture()
def login_button():
    return FakeElement(
        tag_name="button",
        text="Login",
        attributes={"id": "login-button", "class": "btn btn-primary", "type": "submit"},
    )


@pytest.fixture()
def fake_driver(login_button):
    return FakeDriver({(By.ID, "login-button"): login_button})


@pytest.fixture()
def fake_healing_service():
    app = create_fake_healing_app()
    with serve_app(app) as base_url:
        yield base_url, app.config["HEALING_STATE"]
