"""
Character Normalizer Preprocessor

Optional character-level cleanup applied before the line filters:
- remove_special_chars: replaces anything that is not a letter, digit,
  whitespace or punctuation/symbol (emoji, control characters, private-use
  glyphs from PDF fonts) with a space
- remove_numbers: replaces every run of digits with a space
"""

import re
import unicodedata

from docreader.preprocessing.base import BasePreprocessor, PreprocessingResult

_DIGIT_RUN_PATTERN = re.compile(r'\d+')


def _is_kept_character(ch: str) -> bool:
    if ch.isalnum() or ch.isspace():
        return True
    # Punctuation and math/currency/modifier symbols; "So" (emoji, dingbats) goes
    category = unicodedata.category(ch)
    return category[0] == "P" or category in ("Sm", "Sc", "Sk")


class CharacterNormalizer(BasePreprocessor):
    """
    Removes special characters and/or digits.

    Args:
        remove_special_chars: Replace non-text characters with spaces
        remove_numbers: Replace digit runs with spaces
    """

    name = "Character Normalizer"

    def __init__(self, remove_special_chars: bool = True, remove_numbers: bool = False):
        self.remove_special_chars = remove_special_chars
        self.remove_numbers = remove_numbers

    def process(self, text: str) -> PreprocessingResult:
        special_count = 0
        digit_count = 0
        result = text

        if self.remove_special_chars:
            chars = []
            for ch in result:
                if _is_kept_character(ch):
                    chars.append(ch)
                else:
                    chars.append(' ')
                    special_count += 1
            result = ''.join(chars)

        if self.remove_numbers:
            result, digit_count = _DIGIT_RUN_PATTERN.subn(' ', result)

        return PreprocessingResult(
            text=result,
            changes_made=special_count + digit_count,
            metadata={'special_chars': special_count, 'digit_runs': digit_count},
        )
