import pytest

import ui_helpers
from library import CatalogStore


@pytest.fixture
def data_file(tmp_path, request):
    # Unique snapshot file per test
    return str(tmp_path / f"test_{request.node.name}.json")


@pytest.fixture
def lib(data_file):
    return CatalogStore(data_file=data_file)


@pytest.fixture(autouse=True)
def plain_output():
    ui_helpers.set_output_mode("plain")
    yield
    ui_helpers.set_output_mode("plain")
