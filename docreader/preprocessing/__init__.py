"""
Text Cleaning Pipeline

Cleans extracted document text before chunking. Each preprocessor is a
standalone class that can be enabled/disabled independently.

Pipeline Architecture:
- BasePreprocessor: Abstract base class defining the preprocessor interface
- PreprocessingPipeline: Runs multiple preprocessors in sequence
- Individual preprocessors: PageNumberRemover, CaptionRemover, LinkRemover,
  ReferenceSectionRemover, CharacterNormalizer

Usage:
    from docreader.preprocessing import create_default_pipeline

    pipeline = create_default_pipeline(remove_numbers=True)
    cleaned_text = pipeline.process(raw_text)
"""

from docreader.preprocessing.base import (
    BasePreprocessor,
    PreprocessingPipeline,
    PreprocessingResult,
)
from docreader.preprocessing.boilerplate_remover import CaptionRemover, PageNumberRemover
from docreader.preprocessing.character_normalizer import CharacterNormalizer
from docreader.preprocessing.link_remover import LinkRemover
from docreader.preprocessing.reference_section_remover import ReferenceSectionRemover


def create_default_pipeline(
    remove_special_chars: bool = True,
    remove_numbers: bool = False,
) -> PreprocessingPipeline:
    """
    Create the cleaning pipeline used by the DocumentLoader.

    Order matters:
    1. CharacterNormalizer - optional special character / digit removal
    2. PageNumberRemover - only matches while digits survive step 1
    3. CaptionRemover - same digit requirement as page numbers
    4. LinkRemover - URLs and email addresses
    5. ReferenceSectionRemover - cuts the trailing bibliography last

    Args:
        remove_special_chars: Replace non-text characters with spaces
        remove_numbers: Replace digit runs with spaces

    Returns:
        Configured PreprocessingPipeline instance
    """
    normalizer = CharacterNormalizer(
        remove_special_chars=remove_special_chars,
        remove_numbers=remove_numbers,
    )
    normalizer.enabled = remove_special_chars or remove_numbers

    return (
        PreprocessingPipeline()
        .add_preprocessor(normalizer)
        .add_preprocessor(PageNumberRemover())
        .add_preprocessor(CaptionRemover())
        .add_preprocessor(LinkRemover())
        .add_preprocessor(ReferenceSectionRemover())
    )


__all__ = [
    'BasePreprocessor',
    'PreprocessingPipeline',
    'PreprocessingResult',
    'PageNumberRemover',
    'CaptionRemover',
    'LinkRemover',
    'ReferenceSectionRemover',
    'CharacterNormalizer',
    'create_default_pipeline',
]
