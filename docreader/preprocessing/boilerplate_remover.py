"""
Boilerplate Line Removers

Removes whole lines that carry layout rather than content:
- "Page 3", "Page 12 of 40" page-number lines
- "Figure 2: ..." and "Table 1 ..." caption lines

Only the line contents are removed; the line breaks stay, so paragraph
boundaries seen by the chunker are unchanged.
"""

import re

from docreader.preprocessing.base import BasePreprocessor, PreprocessingResult


class PageNumberRemover(BasePreprocessor):
    """
    Removes page-number lines.

    Example input:
        ...end of the paragraph.
        Page 4 of 12
        Next paragraph...

    The middle line becomes empty.
    """

    name = "Page Number Remover"

    PAGE_LINE_PATTERN = re.compile(r'^[ \t]*Page[ \t]+\d+.*$', re.IGNORECASE | re.MULTILINE)

    def process(self, text: str) -> PreprocessingResult:
        result, count = self.PAGE_LINE_PATTERN.subn('', text)
        return PreprocessingResult(text=result, changes_made=count)


class CaptionRemover(BasePreprocessor):
    """Removes figure and table caption lines ("Figure 3: Revenue by year")."""

    name = "Caption Remover"

    CAPTION_PATTERN = re.compile(r'^[ \t]*(?:Figure|Table)[ \t]+\d+.*$', re.IGNORECASE | re.MULTILINE)

    def process(self, text: str) -> PreprocessingResult:
        result, count = self.CAPTION_PATTERN.subn('', text)
        return PreprocessingResult(text=result, changes_made=count)
