"""
Tests for Helpful Definitions repair.
"""

import pytest

from unjargn.definitions import (
	fix_helpful_definitions_formatting,
	format_term,
	repair_definition_line,
	split_term_definition,
)


class TestSplitTermDefinition:
	"""Test term/definition splitting."""

	@pytest.mark.parametrize("line,expected", [
		("- **Tax:** money owed", ("Tax", "money owed")),
		("- **Tax**: money owed", ("Tax", "money owed")),
		("Statute: a written law", ("Statute", "a written law")),
		("Ratio: debt: equity", ("Ratio", "debt: equity")),
		("Escrow — money held by a third party", ("Escrow", "money held by a third party")),
		("* APR - yearly rate", ("APR", "yearly rate")),
	])
	def test_separators(self, line, expected):
		assert split_term_definition(line) == expected

	def test_long_dash_term_rejected(self):
		"""A long sentence with a spaced dash is not a term."""
		line = "x" * 130 + " - y"
		assert split_term_definition(line) is None

	def test_no_separator(self):
		assert split_term_definition("Just a sentence without separators") is None

	def test_hyphenated_word_not_split(self):
		assert split_term_definition("Well-known fact stands alone") is None


class TestFormatTerm:
	@pytest.mark.parametrize("term,expected", [
		("HIPAA", "**HIPAA**"),
		("[HIPAA]", "**HIPAA**"),
		("(FDA)", "**FDA**"),
		("**Lien**", "**Lien**"),
		("**APR** (Annual Percentage Rate)", "**APR (Annual Percentage Rate)**"),
		("[**Escrow**]", "**Escrow**"),
		("  Net 30 ", "**Net 30**"),
	])
	def test_wrapped_once(self, term, expected):
		assert format_term(term) == expected


class TestRepairDefinitionLine:
	"""Test per-line repair."""

	def test_dash_form(self):
		assert repair_definition_line("* Lien - a legal claim") == "- **Lien**: a legal claim"

	def test_partly_bold_term(self):
		line = repair_definition_line("- **APR** (Annual Percentage Rate): the yearly cost of a loan")
		assert line == "- **APR (Annual Percentage Rate)**: the yearly cost of a loan"
		assert line.count("**") == 2

	def test_bracketed_term(self):
		assert repair_definition_line("[APR]: yearly rate") == "- **APR**: yearly rate"

	@pytest.mark.parametrize("line", ["N/A", "", "   ", "no separator here"])
	def test_left_alone(self, line):
		assert repair_definition_line(line) == line

	def test_idempotent(self):
		once = repair_definition_line("**Tax:** money owed")
		assert once == "- **Tax**: money owed"
		assert repair_definition_line(once) == once


class TestFixHelpfulDefinitionsFormatting:
	"""Test repair of the Helpful Definitions body."""

	def test_body_lines_repaired(self):
		text = (
			"1. Summary\nS\n\n2. Main Points\n- a\n\n"
			"3. Helpful Definitions\nTax: money\n[APR] – yearly rate\nunparseable line"
		)
		assert fix_helpful_definitions_formatting(text) == (
			"1. Summary\nS\n\n2. Main Points\n- a\n\n"
			"3. Helpful Definitions\n- **Tax**: money\n- **APR**: yearly rate\nunparseable line"
		)

	def test_placeholder_untouched(self):
		text = "1. Summary\nS\n\n2. Main Points\nN/A\n\n3. Helpful Definitions\nN/A"
		assert fix_helpful_definitions_formatting(text) == text

	def test_other_sections_untouched(self):
		"""A colon line in Main Points is not treated as a definition."""
		text = "1. Summary\nS\n\n2. Main Points\n- Note: keep me\n\n3. Helpful Definitions\nA: b"
		fixed = fix_helpful_definitions_formatting(text)
		assert "- Note: keep me" in fixed
		assert fixed.endswith("3. Helpful Definitions\n- **A**: b")

	def test_document_mode_reorders_first(self):
		"""Document output with headers out of order is rebuilt, then repaired."""
		raw = "**Helpful Definitions:**\nLien: a claim\n**Summary:** A note.\n"
		assert fix_helpful_definitions_formatting(raw, document=True) == (
			"1. Summary\nA note.\n\n2. Main Points\nN/A\n\n3. Helpful Definitions\n- **Lien**: a claim"
		)
