"""Processing package — normalisation, topic grouping and viewer artifacts."""

from docpipe.processor.llm import build_generator
from docpipe.processor.normalizer import Normalizer, NormalizedItem, fallback_transform
from docpipe.processor.pipeline import process_documentation
from docpipe.processor.structure import build_index, build_structure, classify_topic, load_viewer_content

__all__ = [
    "Normalizer",
    "NormalizedItem",
    "build_generator",
    "build_index",
    "build_structure",
    "classify_topic",
    "fallback_transform",
    "load_viewer_content",
    "process_documentation",
]
