"""Style collection and deduplication."""
import threading
from typing import Iterable, List

from pyenhance.engine.expansion import MARKER_ATTRIBUTE, MARKER_VALUE


def distinct(texts: Iterable[str]) -> List[str]:
    """Non-empty texts, first occurrence only, in order."""
    return list(dict.fromkeys(text for text in texts if text))


def join_distinct(texts: Iterable[str]) -> str:
    return "\n".join(distinct(texts))


def render_style_block(styles: Iterable[str]) -> str:
    """Wrap styles in a marked <style> element, or return "" when there are none."""
    combined = join_distinct(styles)
    if not combined:
        return ""
    return f'<style {MARKER_ATTRIBUTE}="{MARKER_VALUE}">\n{combined}\n</style>'


class RequestStyleAggregator:
    """Collects scoped styles from every render of one request.

    Writers may run concurrently; duplicates are kept on write and dropped on
    read, so the first insertion decides the position of each style.
    """

    def __init__(self):
        self._entries: List[str] = []
        self._lock = threading.Lock()

    def add(self, styles: str) -> None:
        with self._lock:
            self._entries.append(styles)

    def entries(self) -> List[str]:
        with self._lock:
            snapshot = list(self._entries)
        return distinct(snapshot)

    def render(self) -> str:
        """Render all collected styles as a single <style> block."""
        return render_style_block(self.entries())
