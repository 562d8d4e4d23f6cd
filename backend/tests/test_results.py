"""
Tests for the full output repair pipeline and the structured view.
"""

from unjargn.results import parse_result, placeholder_document, repair_output
from unjargn.schemas import Definition

MESSY = (
	"**Summary:** Taxes go up.\n"
	"**Main Points**\n"
	"• Rates rise. • Deductions shrink.\n"
	"**Key Definitions**\n"
	"Rate: percentage charged"
)

REPAIRED = (
	"1. Summary\nTaxes go up.\n"
	"2. Main Points\n- Rates rise.\n- Deductions shrink.\n\n"
	"3. Helpful Definitions\n- **Rate**: percentage charged"
)


class TestRepairOutput:
	"""Test the header, bullet and definition passes together."""

	def test_messy_reply(self):
		assert repair_output(MESSY) == REPAIRED

	def test_idempotent(self):
		assert repair_output(REPAIRED) == REPAIRED

	def test_document_mode(self):
		raw = "Helpful Definitions:\nAPR – yearly rate\n\nSummary:\nA card agreement.\n\nMain Points:\n* Fees apply"
		assert repair_output(raw, document=True) == (
			"1. Summary\nA card agreement.\n\n"
			"2. Main Points\n- Fees apply\n\n"
			"3. Helpful Definitions\n- **APR**: yearly rate"
		)

	def test_empty_reply(self):
		assert repair_output("") == placeholder_document("N/A")


class TestParseResult:
	"""Test the structured view of canonical text."""

	def test_sections(self):
		result = parse_result(REPAIRED)
		assert result.summary == "Taxes go up."
		assert result.main_points == ["Rates rise.", "Deductions shrink."]
		assert result.helpful_definitions == [Definition(term="Rate", definition="percentage charged")]

	def test_placeholders_are_empty(self):
		result = parse_result(placeholder_document("Something went wrong."))
		assert result.summary == "Something went wrong."
		assert result.main_points == []
		assert result.helpful_definitions == []

	def test_round_trip_text(self):
		"""Rendering the parsed result gives back the canonical text."""
		text = "1. Summary\nS\n\n2. Main Points\n- a\n- b\n\n3. Helpful Definitions\n- **T**: d"
		assert parse_result(text).to_text() == text


class TestPlaceholderDocument:
	def test_shape(self):
		assert placeholder_document("Upstream model error") == (
			"1. Summary\nUpstream model error\n\n2. Main Points\nN/A\n\n3. Helpful Definitions\nN/A"
		)
