"""Prompts for the outline, section and refinement stages.

Policy that cannot be checked structurally (section roles, heading
language, protected spans) is communicated here, by instruction.
"""

from __future__ import annotations

from typing import Optional

from inkpress.common.models import GenerationRequest, OutlineSection, SeoStrategy

KEY_TAKEAWAYS_HEADING = "Key Takeaways"
FAQ_HEADING = "FAQ"

CALLOUT_EXAMPLES = """\
> [!NOTE] This is a note.
> [!TIP] This is a pro tip.
> [!WARNING] Be careful with this."""

PROTECTED_SPANS_RULES = """\
- Mermaid diagrams (```mermaid ... ```) MUST be kept EXACTLY as is.
- Markdown tables MUST be kept EXACTLY as is.
- Callouts (> [!NOTE], > [!TIP], > [!WARNING]) MUST be kept EXACTLY as is.
- Headings (#, ##, ###) MUST keep their level and wording."""


def build_outline_prompt(
    request: GenerationRequest,
    research_text: str,
    language: str,
    seo_strategy: Optional[SeoStrategy] = None,
    rival_insights: Optional[str] = None,
) -> str:
    """Build the structured-output prompt for the outline stage.

    Args:
        request: Validated generation request.
        research_text: Rendered research context (may be empty).
        language: Language the title, headings and key points must use.
        seo_strategy: Optional SEO plan steering headings and keywords.
        rival_insights: Optional competitor analysis to outperform.

    Returns:
        Prompt text asking for {"title", "sections": [{heading, key_points}]}.
    """
    target_keywords = ", ".join(seo_strategy.target_keywords) if seo_strategy else ""
    h2_suggestions = ", ".join(seo_strategy.h2_suggestions) if seo_strategy else ""
    intent = seo_strategy.search_intent.value if seo_strategy else "Informational"

    rival_block = ""
    if rival_insights:
        rival_block = f"""
competitor_analysis:
\"\"\"
{rival_insights}
\"\"\"
Cover what the competitor misses and avoid its weaknesses.
"""

    return f"""\
You are a Senior Content Architect.
Your goal is to plan a comprehensive, professional blog post.

Topic: {request.topic}
Keywords: {request.keywords_text}
Tone: {request.tone.value}
Length: {request.length.value}

search_context:
\"\"\"
{research_text or "No search context provided."}
\"\"\"
{rival_block}
INSTRUCTIONS:
1. Analyze the 'search_context' to identify key themes and logical flow.
2. Structure the post into 5-8 distinct sections.
3. CRITICAL: The first section MUST be a "{KEY_TAKEAWAYS_HEADING}" summary section.
4. CRITICAL: The LAST section MUST be a "{FAQ_HEADING}" section.
5. SEO strategy:
   - Integrate these target keywords into the headings naturally: {target_keywords or "N/A"}.
   - Use these H2 suggestions if relevant: {h2_suggestions or "N/A"}.
   - Address the search intent: "{intent}".
6. For each section, define the 'heading' and 2-4 'key_points' to cover.
7. CRITICAL: Do NOT include numbers in the 'heading' string ("Introduction", not "1. Introduction").
8. LANGUAGE: The title, headings and key points MUST be in {language}.
9. Output MUST be valid JSON with this structure:
{{
  "title": "A compelling title for the post",
  "sections": [
    {{ "heading": "Section Heading", "key_points": ["Point 1", "Point 2"] }}
  ]
}}
"""


def build_section_prompt(
    request: GenerationRequest,
    section: OutlineSection,
    research_text: str,
    language: str,
) -> str:
    """Build the prompt that drafts exactly one outline section."""
    points = "\n".join(f"- {p}" for p in section.key_points) or "- (use your judgement)"

    return f"""\
You are a Senior Technical Analyst. Write ONE section of a blog post.

Overall Topic: {request.topic}
Current Section: {section.heading}
Key Points to Cover:
{points}

search_context:
\"\"\"
{research_text}
\"\"\"

STRICT INSTRUCTIONS:
1. Write ONLY the content for this section. Do NOT repeat the heading.
2. Formatting:
   - Use Markdown headers (###, ####) for subsections.
   - Do NOT use H1 (#) or H2 (##); the section title is added automatically.
3. Include concrete real-world scenarios and precise terminology.
4. Cite sources from 'search_context' using inline brackets like [1], [2].
5. Use callouts for important notes:
{CALLOUT_EXAMPLES}
6. Use Markdown tables for comparisons and ```mermaid blocks for processes,
   quoting every node label.
7. If information is missing, say so or focus on general principles.
8. Tone: {request.tone.value}
9. LANGUAGE: Write strictly in {language}. Keep English only for proper nouns and technical terms.
"""


def build_refine_prompt(draft: str, topic: str, experience: Optional[str] = None) -> str:
    """Build the editor prompt used by the refinement stage."""
    experience_block = ""
    if experience:
        experience_block = f"""
AUTHOR EXPERIENCE:
Weave this first-hand experience naturally into the most relevant section,
without inventing further details:
\"\"\"
{experience}
\"\"\"
"""

    return f"""\
You are an Editor-in-Chief with 20 years of experience in technical writing.
Refine the provided blog post draft.

Topic: {topic}

EDITING CRITERIA:
1. Fix illogical statements or ambiguous expressions.
2. Keep the tone consistent and professional.
3. Remove repetitive words, sentences or paragraphs.
4. Break down overly long paragraphs.

PROTECTED CONTENT (do not alter):
{PROTECTED_SPANS_RULES}
{experience_block}
OUTPUT: Return ONLY the refined Markdown content, with no preamble or comments.

Draft Content:
\"\"\"
{draft}
\"\"\"
"""
