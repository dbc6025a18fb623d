"""
Tests for the text cleaning pipeline.

Tests cover:
- PageNumberRemover and CaptionRemover line filters
- LinkRemover URL and email removal
- ReferenceSectionRemover trailing bibliography cut
- CharacterNormalizer special character and digit handling
- PreprocessingPipeline ordering, error isolation and stats
- create_default_pipeline flags
"""

from docreader.preprocessing import (
    BasePreprocessor,
    CaptionRemover,
    CharacterNormalizer,
    LinkRemover,
    PageNumberRemover,
    PreprocessingPipeline,
    PreprocessingResult,
    ReferenceSectionRemover,
    create_default_pipeline,
)


class TestPageNumberRemover:
    """Tests for page-number line removal."""

    def test_removes_page_lines(self):
        """Should blank lines like 'Page 4 of 12'."""
        text = "First paragraph.\nPage 4 of 12\nSecond paragraph."
        result = PageNumberRemover().process(text)
        assert "Page 4" not in result.text
        assert result.changes_made == 1

    def test_keeps_line_breaks(self):
        """Only line contents go; paragraph structure stays."""
        text = "A\n\nPage 2\n\nB"
        assert PageNumberRemover().process(text).text == "A\n\n\n\nB"

    def test_case_insensitive(self):
        assert PageNumberRemover().process("PAGE 7").text == ""

    def test_ignores_page_in_running_text(self):
        """A sentence mentioning a page is not a page-number line."""
        text = "See the front page 3 for details."
        assert PageNumberRemover().process(text).text == text


class TestCaptionRemover:
    """Tests for figure and table caption removal."""

    def test_removes_figure_and_table_captions(self):
        text = "Intro.\nFigure 2: Revenue by year\nTable 1 Totals\nOutro."
        result = CaptionRemover().process(text)
        assert "Figure" not in result.text
        assert "Table" not in result.text
        assert result.changes_made == 2

    def test_requires_a_number(self):
        text = "Table of contents"
        assert CaptionRemover().process(text).text == text


class TestLinkRemover:
    """Tests for URL and email removal."""

    def test_removes_urls_and_emails(self):
        text = "See https://example.com/report or mail info@example.org."
        result = LinkRemover().process(text)
        assert result.text == "See  or mail ."
        assert result.metadata == {'urls': 1, 'emails': 1}

    def test_removes_www_links(self):
        assert LinkRemover().process("Visit www.example.com today").text == "Visit  today"


class TestReferenceSectionRemover:
    """Tests for cutting the trailing bibliography."""

    def test_cuts_from_heading_to_end(self):
        text = "Body text.\n\nReferences\n[1] Smith 2020.\n[2] Jones 2021."
        result = ReferenceSectionRemover().process(text)
        assert result.text == "Body text.\n\n"
        assert result.changes_made == 1

    def test_no_heading_is_unchanged(self):
        text = "Body text mentions references to other work."
        result = ReferenceSectionRemover().process(text)
        assert result.text == text
        assert result.changes_made == 0

    def test_heading_must_start_the_line(self):
        text = "These are the references we used."
        assert ReferenceSectionRemover().process(text).text == text


class TestCharacterNormalizer:
    """Tests for special character and digit removal."""

    def test_removes_emoji_keeps_punctuation(self):
        result = CharacterNormalizer().process("Profit rose 5% \U0001F680, again!")
        assert "\U0001F680" not in result.text
        assert "5%" in result.text
        assert "," in result.text and "!" in result.text
        assert result.metadata['special_chars'] == 1

    def test_keeps_accented_letters(self):
        assert CharacterNormalizer().process("café naïve").text == "café naïve"

    def test_removes_digit_runs(self):
        normalizer = CharacterNormalizer(remove_special_chars=False, remove_numbers=True)
        result = normalizer.process("In 2023 we sold 15 units")
        assert result.text == "In   we sold   units"
        assert result.metadata['digit_runs'] == 2


class TestPreprocessingPipeline:
    """Tests for the pipeline runner."""

    def test_runs_in_order(self):
        class Upper(BasePreprocessor):
            name = "Upper"

            def process(self, text):
                return PreprocessingResult(text=text.upper(), changes_made=1)

        class Exclaim(BasePreprocessor):
            name = "Exclaim"

            def process(self, text):
                return PreprocessingResult(text=text + "!", changes_made=1)

        pipeline = PreprocessingPipeline([Upper(), Exclaim()])
        assert pipeline.process("hi") == "HI!"
        assert pipeline.total_changes == 2

    def test_failing_preprocessor_is_skipped(self):
        """An exception in one step leaves the text for the next step."""
        class Broken(BasePreprocessor):
            name = "Broken"

            def process(self, text):
                raise RuntimeError("bad")

        pipeline = PreprocessingPipeline([Broken(), LinkRemover()])
        assert pipeline.process("go to www.a.com now") == "go to  now"
        assert pipeline.get_stats()["Broken"]["error"] == "bad"

    def test_disabled_preprocessor_is_skipped(self):
        remover = LinkRemover()
        remover.enabled = False
        pipeline = PreprocessingPipeline([remover])
        assert pipeline.process("www.a.com") == "www.a.com"

    def test_empty_text_passes_through(self):
        assert PreprocessingPipeline([LinkRemover()]).process("") == ""

    def test_add_preprocessor_chains_in_order(self):
        remover = LinkRemover()
        pipeline = PreprocessingPipeline().add_preprocessor(PageNumberRemover()).add_preprocessor(remover)
        assert pipeline.preprocessors[-1] is remover
        assert pipeline.process("see www.a.com\nPage 3") == "see \n"


class TestCreateDefaultPipeline:
    """Tests for the loader's default pipeline."""

    def test_default_step_order(self):
        names = [type(p).__name__ for p in create_default_pipeline().preprocessors]
        assert names == [
            "CharacterNormalizer", "PageNumberRemover", "CaptionRemover",
            "LinkRemover", "ReferenceSectionRemover",
        ]

    def test_default_keeps_digits(self):
        text = "Revenue was 42 million.\nPage 3\nSee https://x.org\n\nReferences\n[1] A."
        cleaned = create_default_pipeline().process(text)
        assert "42" in cleaned
        assert "Page 3" not in cleaned
        assert "https" not in cleaned
        assert "[1] A." not in cleaned

    def test_remove_numbers(self):
        cleaned = create_default_pipeline(remove_numbers=True).process("Revenue was 42 million.")
        assert "42" not in cleaned

    def test_normalizer_disabled_without_flags(self):
        pipeline = create_default_pipeline(remove_special_chars=False, remove_numbers=False)
        assert pipeline.process("Launch \U0001F680 soon") == "Launch \U0001F680 soon"
