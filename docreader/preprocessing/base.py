"""
Cleaning step interface and the pipeline that chains the steps.

A cleaning step removes one kind of noise from extracted text (page
numbers, captions, links, a trailing bibliography, stray glyphs) and
reports how much it changed. The DocumentLoader runs the steps in order
through a PreprocessingPipeline.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from docreader.logging_config import Timer, debug_log


@dataclass
class PreprocessingResult:
    """
    Output of one cleaning step.

    Attributes:
        text: The cleaned text
        changes_made: Number of removals or substitutions
        metadata: Step-specific counts (e.g. {'urls': 2, 'emails': 0})
    """
    text: str
    changes_made: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)


class BasePreprocessor(ABC):
    """
    One cleaning step.

    Subclasses set `name` and implement process(). Setting `enabled` to
    False on an instance makes the pipeline skip it.

    Example:
        class TabExpander(BasePreprocessor):
            name = "Tab Expander"

            def process(self, text):
                return PreprocessingResult(text.expandtabs(4), text.count("\\t"))
    """

    name: str = "Base Preprocessor"
    enabled: bool = True

    @abstractmethod
    def process(self, text: str) -> PreprocessingResult:
        """Clean text and report the changes."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(enabled={self.enabled})"


class PreprocessingPipeline:
    """
    Chains cleaning steps; each step sees the previous step's output.

    Cleaning is best effort: a step that raises is recorded in the stats
    and skipped, and the text it was given moves on unchanged.

    Attributes:
        preprocessors: Steps in execution order
        total_changes: Sum of changes_made over the last run
    """

    def __init__(self, preprocessors: list[BasePreprocessor] | None = None):
        self.preprocessors: list[BasePreprocessor] = list(preprocessors or [])
        self.total_changes = 0
        self._stats: dict[str, dict[str, Any]] = {}

    def add_preprocessor(self, preprocessor: BasePreprocessor) -> 'PreprocessingPipeline':
        """Append a step; returns the pipeline so calls can be chained."""
        self.preprocessors.append(preprocessor)
        return self

    def process(self, text: str) -> str:
        """
        Run every enabled step over text.

        Returns:
            The cleaned text (empty input is returned as is)
        """
        self.total_changes = 0
        self._stats = {}
        if not text:
            return text

        for step in (p for p in self.preprocessors if p.enabled):
            with Timer(step.name, auto_log=False) as timer:
                try:
                    result = step.process(text)
                except Exception as e:
                    debug_log(f"[Preprocessing] {step.name} failed, skipping: {e}")
                    self._stats[step.name] = {'error': str(e), 'changes': 0}
                    continue

            text = result.text
            self.total_changes += result.changes_made
            self._stats[step.name] = {
                'changes': result.changes_made,
                'time_ms': timer.elapsed * 1000,
                'metadata': result.metadata,
            }

        debug_log(f"[Preprocessing] {len(self._stats)} steps, {self.total_changes} changes")
        return text

    def get_stats(self) -> dict[str, dict[str, Any]]:
        """Per-step statistics of the last run, keyed by step name."""
        return dict(self._stats)

    def __repr__(self) -> str:
        return f"PreprocessingPipeline({self.preprocessors!r})"
