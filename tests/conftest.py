"""
Shared Test Configuration
"""


def pytest_configure(config):
    """
    Configure pytest with custom markers.

    Run only the fast tests with: pytest -m unit
    """
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line(
        "markers",
        "integration: Tests running the whole recorder in mock mode",
    )
