"""Processing pipeline: ordered enrichment stages over a ``Content`` record.

Stages:
  image-discovery        observe image references
  link-validation        observe link references (external vs relative)
  content-enhancement    fill empty description and tags from the body
"""

from markflow.pipeline.base import ProcessingPipeline, ProcessingStage
from markflow.pipeline.stages import (
    TAG_VOCABULARY,
    ContentEnhancementStage,
    ImageDiscoveryStage,
    ImageRef,
    LinkRef,
    LinkValidationStage,
    extract_images,
    extract_links,
    extract_tags,
    generate_summary,
)

__all__ = [
    "ContentEnhancementStage",
    "ImageDiscoveryStage",
    "ImageRef",
    "LinkRef",
    "LinkValidationStage",
    "ProcessingPipeline",
    "ProcessingStage",
    "TAG_VOCABULARY",
    "extract_images",
    "extract_links",
    "extract_tags",
    "generate_summary",
]
