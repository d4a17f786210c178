"""Root conftest: suite markers, metric isolation and media fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from contextmem.models import MediaPart
from contextmem.observability import reset_metrics


_SUITE_MARKERS = {
    "unit": pytest.mark.unit,
    "integration": pytest.mark.integration,
}


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    """Mark each test with its suite, taken from the ``tests/<suite>/`` folder."""
    tests_dir = Path(__file__).resolve().parent
    for item in items:
        try:
            suite = item.path.resolve().relative_to(tests_dir).parts[0]
        except (ValueError, IndexError):
            continue
        marker = _SUITE_MARKERS.get(suite)
        if marker is not None:
            item.add_marker(marker)


@pytest.fixture(autouse=True)
def clean_metrics():
    """Reset in-process metrics between tests."""
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture()
def png_bytes() -> bytes:
    """PNG signature followed by every byte value (not a decodable image)."""
    return b"\x89PNG\r\n\x1a\n" + bytes(range(256))


@pytest.fixture()
def png_part(png_bytes) -> MediaPart:
    return MediaPart.from_bytes(png_bytes)
