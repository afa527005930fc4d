import pytest

from jenkinsctl.ui.console import Console, set_console


@pytest.fixture(autouse=True)
def plain_console():
    """Uncolored, non-verbose console for every test."""
    console = Console(color=False)
    set_console(console)
    yield console
    set_console(None)
