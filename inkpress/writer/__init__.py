# Writer — outline → bounded-concurrency sections → assembly → refinement
"""
Primary generation pipeline.

The outline stage plans the post, sections are drafted in sequential
batches of concurrent provider calls, the assembly stage renders title,
sections and references into one markdown draft, and the refinement stage
polishes it best-effort.
"""

from .assembly import NO_REFERENCES_TEXT, DocumentAssembler, assemble_document, extract_references
from .outline import check_outline_shape, generate_outline
from .pipeline import GenerationPipeline, GenerationResult
from .progress import GenerationStage, ProgressEvent, ProgressReporter
from .refine import refine_draft
from .sections import draft_sections, placeholder_body, write_section
from .structure import compare_protected_spans, count_protected_spans

__all__ = [
    "DocumentAssembler",
    "GenerationPipeline",
    "GenerationResult",
    "GenerationStage",
    "NO_REFERENCES_TEXT",
    "ProgressEvent",
    "ProgressReporter",
    "assemble_document",
    "check_outline_shape",
    "compare_protected_spans",
    "count_protected_spans",
    "draft_sections",
    "extract_references",
    "generate_outline",
    "placeholder_body",
    "refine_draft",
    "write_section",
]
