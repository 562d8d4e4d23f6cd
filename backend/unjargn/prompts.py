"""
Prompt construction for the simplification endpoints.

Every prompt asks the model for exactly three numbered sections
(``1. Summary``, ``2. Main Points``, ``3. Helpful Definitions``). The wording
depends on the reading level, on the subject domain, and on whether the input
is so short that the model has to expand from background knowledge instead of
rewriting.

All functions here are pure: same input, same string.
"""

from __future__ import annotations
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from .schemas import Domain, Level


DEFAULT_MAX_DOCUMENT_CHARS = 15_000
DEFAULT_SHORT_MAX_WORDS = 5
DEFAULT_SHORT_MIN_CHARS = 40


# ============================================================================
# READING LEVELS
# ============================================================================

LEVEL_STYLES: Dict[Level, str] = {
	Level.BEGINNER: (
		"Write as if you were talking to a little kid. Use short sentences, very simple words, "
		"and a friendly tone. Avoid jargon."
	),
	Level.INTERMEDIATE: (
		"Write at ~high school grade level. Be clear and approachable, with light terminology explained."
	),
	Level.ADVANCED: (
		"Write at an adult undergraduate college-educated level. Be concise and precise; "
		"use accurate terminology with brief clarifications."
	),
	Level.PROFESSIONAL: (
		"Write for professional/PhD readers. Be technically rigorous, retain precise terms and nuance, "
		"and avoid over-simplification. Discuss terms in-depth, include potential biases and perhaps "
		"even controversies for context."
	),
}

# Image descriptions use a lighter register
IMAGE_LEVEL_STYLES: Dict[Level, str] = {
	Level.BEGINNER: "Write for a beginner. Use short sentences, simple words, and a friendly tone.",
	Level.INTERMEDIATE: "Write at a clear high-school level. Be approachable and explain key terms briefly.",
	Level.ADVANCED: "Write at an adult college-educated level. Be concise and precise, explain terms briefly.",
	Level.PROFESSIONAL: "Write for professional/PhD readers. Be technically rigorous and precise.",
}


def level_style(level: Any) -> str:
	return LEVEL_STYLES[Level.coerce(level)]


# ============================================================================
# DOMAIN PROFILES
# ============================================================================

class DomainProfile(NamedTuple):
	persona: str
	label: str
	guidance: Tuple[str, ...]
	source_label: str


DOMAIN_PROFILES: Dict[Domain, DomainProfile] = {
	Domain.GENERAL: DomainProfile(
		persona="You are a plain-language explainer helping people understand complex text.",
		label="GENERAL",
		guidance=(
			"In Main Points: summarize the key actions/ideas and any steps or implications.",
			"In Helpful Definitions: define any uncommon terms, acronyms, or references.",
		),
		source_label="Text",
	),
	Domain.LEGAL: DomainProfile(
		persona="You are a legal assistant helping regular people understand complex legal documents.",
		label="LEGAL",
		guidance=(
			"In Main Points: enumerate clauses, amendments, obligations, rights, penalties, and effective dates.",
			'If an example helps, add it as the last bullet: "- Example: …".',
			'In Helpful Definitions: include EVERY statute/section citation (e.g., "section 174A(b)", "56(b)(2)"), '
			"legal terms of art, and agency/authority names.",
		),
		source_label="Legal text",
	),
	Domain.MEDICAL: DomainProfile(
		persona="You are a healthcare explainer helping patients understand medical information.",
		label="MEDICAL",
		guidance=(
			"In Main Points: include diagnosis/condition, purpose of test/procedure, key steps, risks/benefits, "
			"aftercare, and timelines.",
			"In Helpful Definitions: define clinical terms, abbreviations, labs, drug names/classes, and procedures.",
		),
		source_label="Medical text",
	),
	Domain.GOVERNMENT: DomainProfile(
		persona="You are a civic guide helping people understand government programs, policies, and rights.",
		label="GOVERNMENT",
		guidance=(
			"In Main Points: cover eligibility, benefits/obligations, responsible agency, how to apply/comply, "
			"deadlines, and penalties (if any).",
			"In Helpful Definitions: define agencies, program names, legal references (titles/sections/forms).",
		),
		source_label="Government text",
	),
	Domain.FINANCIAL: DomainProfile(
		persona="You are a finance explainer helping people understand financial documents, statements, and policies.",
		label="FINANCIAL",
		guidance=(
			"In Main Points: focus on fees/costs/rates, limits/caps, timelines, obligations/rights, and practical "
			"impacts/risks.",
			"In Helpful Definitions: define financial terms, ratios, instruments, and regulatory references "
			"(e.g., SEC, 10-K, APR).",
		),
		source_label="Financial text",
	),
	Domain.EDUCATION: DomainProfile(
		persona=(
			"You are an education explainer helping students, parents, and educators understand academic "
			"policies and resources."
		),
		label="EDUCATION",
		guidance=(
			"In Main Points: outline requirements, steps, timelines, grading/credit impacts, and available "
			"support/resources.",
			"In Helpful Definitions: define educational terms, programs, acronyms, and administrative processes.",
		),
		source_label="Education text",
	),
	Domain.NUTRITION: DomainProfile(
		persona="You are a nutrition explainer helping people understand foods, labels, and dietary guidance.",
		label="NUTRITION",
		guidance=(
			"In Main Points: highlight serving size, calories per serving, macronutrients (protein, carbs, fat), "
			"added sugars, sodium, fiber, notable vitamins/minerals (%DV), and any allergens/additives. "
			"Call out high/low red flags.",
			'If relevant, end with "- Example: …" showing how someone would use this info in a day.',
			'In Helpful Definitions: define terms like "% Daily Value", "added sugars", "saturated fat", '
			'"trans fat", "fiber", "ultra-processed", "net carbs", "complete protein", and any specialized terms '
			'mentioned. For any common/important term previously mentioned, whether in the generated "main points" '
			"earlier or in the inputted text, recommend the official VERIFIED FDA/government health guideline "
			"suggestion **NUMERICAL** suggested daily value/intake if applicable, such as BUT NOT LIMITED TO "
			'"Recommended daily intake of vitamin C: adult men need ~90 mg and adult women need about ~75 mg".',
		),
		source_label="Nutrition text",
	),
}


# ============================================================================
# INTRO TEMPLATES
# ============================================================================

_CONSTRAINTS = (
	"- Output MUST contain exactly these three numbered headers (no bold, no colons).\n"
	"- Do NOT add extra sections or rename sections.\n"
	"- Do NOT restate/bold the section titles inside the section bodies.\n"
)

NORMAL_INTRO = (
	"{style}\n\n"
	"Please rewrite the following text using EXACTLY these three sections:\n\n"
	"1. Summary – A concise plain-English overview of what the text says, does, or changes. If there are only "
	"a few words inputted, then discuss the definitions and any related information on those words or "
	"combinations of words, just as if someone had searched it up on Google and summarized the related info. "
	"(aim for recent info./news).\n"
	'2. Main Points – Bullet the major takeaways using "- " (who/what changed, actions, steps, implications). '
	'If you include an example, make it the LAST bullet and prefix it with "Example:".\n'
	"3. Helpful Definitions – Define **every** important term, acronym, or cited law/section in the form "
	'"**Term**: definition". If something repeats, include it anyway for clarity. Define them just as if '
	"someone had searched it up on Google and summarized the related info. (aim for recent info./news).\n\n"
	"Constraints:\n"
	+ _CONSTRAINTS
	+ '- If a section is empty, write "N/A".'
)

SHORT_INTRO = (
	"{style}\n\n"
	"The input is a very short phrase/keyword. Produce an informative mini-brief using EXACTLY these three "
	"sections. Use general background knowledge to expand.\n"
	'Do **NOT** write "N/A" in any section, even if the input is only a few words.\n\n'
	"1. Summary – A clear overview of what the term/topic is and why it matters. If relevant, mention notable "
	"recent developments at a high level.\n"
	'2. Main Points – 4–8 hyphen bullets ("- ") covering key properties, uses, risks/benefits, context; if you '
	'include an example, make it the LAST bullet and prefix with "Example:".\n'
	'3. Helpful Definitions – "**Term**: definition" lines for important related concepts, acronyms, or '
	"sub-terms a reader would likely encounter when researching this topic.\n\n"
	"Constraints:\n"
	+ _CONSTRAINTS
	+ '- Never write "N/A"; if information is minimal, expand with concise background.'
)

IMAGE_INTRO = (
	"{style}\n\n"
	"Please rewrite what you can infer from the image using EXACTLY these three sections:\n\n"
	"1. Summary – A concise plain-English overview of what the image shows.\n"
	'2. Main Points – Bullet the major takeaways using "- " (facts, counts, notable elements, implications). '
	'If you include an example, make it the LAST bullet and prefix it with "Example:".\n'
	'3. Helpful Definitions – Define **every** important term or concept in the form "**Term**: definition".\n\n'
	"Constraints:\n"
	"- Output MUST contain exactly these three numbered headers (no bolding the headers, no colons on the header line).\n"
	"- Do NOT add extra sections or rename sections.\n"
	'- If a section is empty, write "N/A".'
)


# ============================================================================
# SYSTEM INSTRUCTIONS
# ============================================================================

_SYSTEM_RULES = (
	"You are an AI assistant that simplifies input into EXACTLY 3 numbered sections:\n\n"
	"1. Summary\n"
	"2. Main Points\n"
	"3. Helpful Definitions\n\n"
	"Hard formatting rules:\n"
	"- Use the three numbered headers EXACTLY as written above (no bold, no colons, no extra punctuation).\n"
	"- Start each section on its own line; content follows on subsequent lines.\n\n"
	"Main Points:\n"
	'- Under "Main Points", use ONLY hyphens "-" for each new item. If there is an example, include it as the '
	'LAST bullet prefixed with "Example:".\n\n'
	"Helpful Definitions:\n"
	'- Under "Helpful Definitions", list EVERY important term, acronym, or cited law/section in the input, '
	'Summary, or Main Points using EXACTLY: "- **Term**: definition".\n\n'
	"Never add extra sections."
)

SYSTEM_INSTRUCTION = _SYSTEM_RULES + ' If a section is empty, output "N/A".'

SHORT_SYSTEM_INSTRUCTION = _SYSTEM_RULES + " Every section must have content; expand from background knowledge."

IMAGE_SYSTEM_INSTRUCTION = (
	"You are an assistant that describes images and outputs in EXACTLY 3 sections:\n"
	"1. Summary\n"
	"2. Main Points\n"
	"3. Helpful Definitions\n\n"
	"Follow the same strict formatting rules as instructed by the user."
)


# ============================================================================
# BUILDERS
# ============================================================================

def is_short_input(
	text: str,
	*,
	max_words: int = DEFAULT_SHORT_MAX_WORDS,
	min_chars: int = DEFAULT_SHORT_MIN_CHARS,
) -> bool:
	"""
	Whether the input is a bare keyword/phrase rather than a passage.

	True when there is at least one word and either the word count is at most
	``max_words`` or the trimmed input is shorter than ``min_chars``. This is a
	heuristic; a few long technical words can land on either side.
	"""
	stripped = (text or "").strip()
	word_count = len(stripped.split())
	if word_count == 0:
		return False
	return word_count <= max_words or len(stripped) < min_chars


def build_prompt(
	domain: Any,
	text: str,
	level: Any,
	*,
	document: bool = False,
	max_document_chars: int = DEFAULT_MAX_DOCUMENT_CHARS,
	short_max_words: int = DEFAULT_SHORT_MAX_WORDS,
	short_min_chars: int = DEFAULT_SHORT_MIN_CHARS,
) -> str:
	"""
	Build the user prompt for a text or PDF-text request.

	Args:
		domain: Subject domain; unknown values use the general profile
		text: Source text, embedded verbatim at the end of the prompt
		level: Reading level; unknown values use intermediate
		document: Document-like input (extracted PDF text); truncated to
			``max_document_chars`` before embedding

	Returns:
		str: The instruction string sent as the user message
	"""
	source = text or ""
	if document:
		source = source[:max_document_chars]
	short = is_short_input(source, max_words=short_max_words, min_chars=short_min_chars)
	template = SHORT_INTRO if short else NORMAL_INTRO
	intro = template.format(style=level_style(level))
	profile = DOMAIN_PROFILES[Domain.coerce(domain)]
	guidance = "\n".join(f"- {line}" for line in profile.guidance)
	return (
		f"{profile.persona}\n\n"
		f"{intro}\n\n"
		f"Domain guidance ({profile.label}):\n{guidance}\n\n"
		f"{profile.source_label}:\n{source}"
	)


def build_image_prompt(level: Any) -> str:
	return IMAGE_INTRO.format(style=IMAGE_LEVEL_STYLES[Level.coerce(level)])


def system_instruction(*, short: bool = False, image: bool = False) -> str:
	if image:
		return IMAGE_SYSTEM_INSTRUCTION
	return SHORT_SYSTEM_INSTRUCTION if short else SYSTEM_INSTRUCTION


def build_messages(
	prompt: str,
	*,
	image_data_url: Optional[str] = None,
	short: bool = False,
) -> List[Dict[str, Any]]:
	"""System instruction plus one user message; images ride along as an ``image_url`` part."""
	if image_data_url:
		user_content: Any = [
			{"type": "text", "text": prompt},
			{"type": "image_url", "image_url": {"url": image_data_url}},
		]
	else:
		user_content = prompt
	return [
		{"role": "system", "content": system_instruction(short=short, image=bool(image_data_url))},
		{"role": "user", "content": user_content},
	]
