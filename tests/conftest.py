"""
Pytest Configuration and Fixtures

Author: termdeck contributors | 2026-10-19
"""

import sys
import threading
from pathlib import Path
from typing import List, Optional

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from termdeck.evaluator import ChannelResponse  # noqa: E402
from termdeck.parser import parse_deck  # noqa: E402
from termdeck.renderer import RenderOptions, Renderer  # noqa: E402


SAMPLE_DECK = """\
| \\cWelcome
termdeck shows \\gplain-text\\d slides.

---
| Code
A runnable block:

```python!
x = 6
x * 7
```

And one that only shows:

```sh
echo "not run"
```
---
Last slide, no title.
"""


class FakeChannel:
    """Evaluator channel double that answers from a canned list."""

    def __init__(self, responses: Optional[List[ChannelResponse]] = None):
        self.responses = list(responses or [])
        self.submitted: List[str] = []
        self.closed = False

    def submit(self, code: str, timeout: float) -> ChannelResponse:
        self.submitted.append(code)
        if self.responses:
            return self.responses.pop(0)
        return ChannelResponse(output=f"ran {len(self.submitted)}\n")

    def close(self) -> None:
        self.closed = True


class HangingChannel:
    """Evaluator channel that never answers until released."""

    def __init__(self):
        self.release = threading.Event()
        self.calls = 0

    def submit(self, code: str, timeout: float) -> ChannelResponse:
        self.calls += 1
        self.release.wait()
        return ChannelResponse(output="too late")

    def close(self) -> None:
        self.release.set()


@pytest.fixture
def sample_text() -> str:
    return SAMPLE_DECK


@pytest.fixture
def sample_deck():
    return parse_deck(SAMPLE_DECK, source="sample.deck")


@pytest.fixture
def sample_file(tmp_path: Path) -> Path:
    path = tmp_path / "talk.deck"
    path.write_text(SAMPLE_DECK, encoding="utf-8")
    return path


@pytest.fixture
def plain_renderer() -> Renderer:
    """Renderer without ANSI escapes or status footer."""
    return Renderer(RenderOptions(color=False, show_status=False))


@pytest.fixture
def fake_channel() -> FakeChannel:
    return FakeChannel()


@pytest.fixture
def hanging_channel():
    channel = HangingChannel()
    yield channel
    channel.release.set()


@pytest.fixture
def clean_environment(monkeypatch):
    """Provide an environment without termdeck overrides."""
    for var in (
        "TERMDECK_EVALUATOR",
        "TERMDECK_EVAL_TIMEOUT",
        "TERMDECK_EVAL_URL",
        "TERMDECK_LOG_LEVEL",
        "NO_COLOR",
    ):
        monkeypatch.delenv(var, raising=False)
