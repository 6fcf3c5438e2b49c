"""Assembly stage: title + ordered sections + references into one draft.

Pure and deterministic: the same inputs always render the same document.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from inkpress.common.models import (
    AssembledDocument,
    Outline,
    Reference,
    ResearchContext,
    SectionResult,
)

NO_REFERENCES_TEXT = "No references detected from search context."

REFERENCE_RE = re.compile(r"\[(\d+)\] Title: (.*?)\nURL: (.*?)\n")

TEMPLATES_DIR = Path(__file__).parent / "templates"
DOCUMENT_TEMPLATE = "document.md.jinja2"


def extract_references(context_text: Optional[str]) -> list[Reference]:
    """Parse ``[i] Title: ...\\nURL: ...`` citation markers from research text."""
    if not context_text:
        return []
    return [
        Reference(index=int(m.group(1)), title=m.group(2).strip(), url=m.group(3).strip())
        for m in REFERENCE_RE.finditer(context_text)
    ]


class DocumentAssembler:
    """Renders the assembled markdown document from a Jinja2 template.

    Usage:
        assembler = DocumentAssembler()
        document = assembler.assemble(outline, sections, research)
    """

    def __init__(self, templates_dir: Optional[Path] = None):
        self.templates_dir = templates_dir or TEMPLATES_DIR
        self.env = Environment(
            loader=FileSystemLoader(str(self.templates_dir)),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def assemble(
        self,
        outline: Outline,
        sections: list[SectionResult],
        research: ResearchContext,
    ) -> AssembledDocument:
        if len(sections) != len(outline.sections):
            raise ValueError(
                f"expected {len(outline.sections)} section results, got {len(sections)}"
            )
        unfinished = [s.index for s in sections if not s.is_terminal]
        if unfinished:
            raise ValueError(f"sections not in a terminal state: {unfinished}")

        ordered = sorted(sections, key=lambda s: s.index)
        blocks = [s.render() for s in ordered]
        references = extract_references(research.to_prompt_context())

        template = self.env.get_template(DOCUMENT_TEMPLATE)
        content = template.render(
            title=outline.title,
            sections=blocks,
            references=references,
            no_references_text=NO_REFERENCES_TEXT,
        )
        return AssembledDocument(
            title=outline.title,
            sections=blocks,
            references=references,
            content=content.strip() + "\n",
        )


_default_assembler: Optional[DocumentAssembler] = None


def assemble_document(
    outline: Outline,
    sections: list[SectionResult],
    research: ResearchContext,
) -> AssembledDocument:
    """Assemble with a module-level DocumentAssembler."""
    global _default_assembler
    if _default_assembler is None:
        _default_assembler = DocumentAssembler()
    return _default_assembler.assemble(outline, sections, research)
