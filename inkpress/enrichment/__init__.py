# Enrichment — side-pipelines that run after or alongside the draft
"""
Optional enrichment stages for a generated post:
- ImageStage: cover image with a deterministic public fallback
- AudioStage: narration script → speech → upload → save
- SEO: local heuristic scoring, LLM analysis, optimization, strategy planning
- Social: per-platform variants upserted per (post, platform)
- Rival analysis and topic recommendation
"""

from .audio import AudioResult, AudioStage
from .image import ImageResult, ImageStage
from .image_processor import CoverImageProcessor
from .rival import RivalAnalysis, analyze_rival
from .seo import OptimizationResult, SeoReport, analyze_seo, optimize_content
from .seo_local import LocalSeoScore, analyze_local_seo
from .seo_planner import build_schema_markup, plan_seo_strategy
from .social import generate_social_content, generate_social_posts
from .topics import RecommendedTopic, recommend_topics

__all__ = [
    "AudioResult",
    "AudioStage",
    "CoverImageProcessor",
    "ImageResult",
    "ImageStage",
    "LocalSeoScore",
    "OptimizationResult",
    "RecommendedTopic",
    "RivalAnalysis",
    "SeoReport",
    "analyze_local_seo",
    "analyze_rival",
    "analyze_seo",
    "build_schema_markup",
    "generate_social_content",
    "generate_social_posts",
    "optimize_content",
    "plan_seo_strategy",
    "recommend_topics",
]
