"""
Reference Section Remover

Drops a trailing bibliography. When a line starts with the word
"References" (any case), everything from that line to the end of the
document is removed. Documents without such a heading pass through
unchanged.
"""

import re

from docreader.preprocessing.base import BasePreprocessor, PreprocessingResult


class ReferenceSectionRemover(BasePreprocessor):
    """Cuts the document at the first line beginning with "References"."""

    name = "Reference Section Remover"

    HEADING_PATTERN = re.compile(r'^[ \t]*References\b', re.IGNORECASE | re.MULTILINE)

    def process(self, text: str) -> PreprocessingResult:
        match = self.HEADING_PATTERN.search(text)
        if not match:
            return PreprocessingResult(text=text, changes_made=0)

        removed = text[match.start():]
        return PreprocessingResult(
            text=text[:match.start()],
            changes_made=1,
            metadata={'removed_chars': len(removed)},
        )
