"""
Link Remover Preprocessor

Removes URLs and email addresses. They rarely help answer a question and
tend to inflate the word count used for token estimation.
"""

import re

from docreader.preprocessing.base import BasePreprocessor, PreprocessingResult


class LinkRemover(BasePreprocessor):
    """
    Removes http(s) URLs, bare www. links and email addresses.

    Example:
        "See https://example.com/report or mail info@example.org."
        -> "See  or mail ."
    """

    name = "Link Remover"

    URL_PATTERN = re.compile(r'https?://\S+|www\.\S+')
    EMAIL_PATTERN = re.compile(r'[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}')

    def process(self, text: str) -> PreprocessingResult:
        result, url_count = self.URL_PATTERN.subn('', text)
        result, email_count = self.EMAIL_PATTERN.subn('', result)
        return PreprocessingResult(
            text=result,
            changes_made=url_count + email_count,
            metadata={'urls': url_count, 'emails': email_count},
        )
