import pytest

from api import storage


class FakeClock:
    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sales_table():
    """Report-style sheet: a title row, then the real header row, then data.

    Sales has 9 numbers and one "n/a" (exactly the 90% numeric threshold).
    """
    return [
        ["Quarterly sales export", None, None],
        ["Region", "Product", "Sales"],
        ["North", "Widget", 10],
        ["North", "Gadget", 20],
        ["South", "Widget", 5],
        ["South", "Widget", "n/a"],
        ["East", "Gizmo", 40],
        ["East", "Widget", 15],
        ["West", "Gadget", 30],
        ["West", "Gizmo", 25],
        ["North", "Widget", 12],
        ["South", "Gadget", 8],
    ]


@pytest.fixture(autouse=True)
def empty_upload_store():
    storage.clear()
    yield
    storage.clear()
