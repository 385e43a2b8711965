# Forces the in-process stub transport unless a test opts into HTTP explicitly
import pytest


@pytest.fixture(autouse=True)
def use_stubs_for_tests(monkeypatch):
    monkeypatch.setenv("INTERNETMARKE_USE_HTTP_ADAPTERS", "0")
