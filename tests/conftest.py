import pytest
from PySide6.QtCore import QCoreApplication


@pytest.fixture(scope="session")
def qapp():
    # Timers need an event dispatcher; QCoreApplication needs no display
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app
