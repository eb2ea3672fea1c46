"""Ordered, extensible enrichment pipeline over a ``Content`` record.

Stages run strictly in sequence and mutate the record in place. A stage
failure is logged and re-raised, and the remaining stages never run.

Stages with "fill if empty" semantics depend on ordering: a stage that fills
a field only when empty must run after every stage that may legitimately set
that field. Each stage declares the fields it writes in ``fields`` so the
dependency is visible through ``ProcessingPipeline.field_owners()``; stages
with disjoint fields commute.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from markflow.content.models import Content

logger = logging.getLogger(__name__)


class ProcessingStage(ABC):
    """One unit of the enrichment pipeline."""

    name: str = "stage"
    fields: tuple[str, ...] = ()

    @abstractmethod
    def process(self, content: Content) -> None:
        """Enrich ``content`` in place.

        Must leave the record valid even when it stops part-way.
        """


class ProcessingPipeline:
    """Runs stages one after another over a single content record.

    The pipeline does not synchronize access: run at most one pipeline per
    ``Content`` instance at a time.
    """

    def __init__(self, stages: list[ProcessingStage] | None = None) -> None:
        self.stages: list[ProcessingStage] = list(stages or [])

    @classmethod
    def default(cls) -> ProcessingPipeline:
        """Image discovery → link validation → content enhancement."""
        from markflow.pipeline.stages import (
            ContentEnhancementStage,
            ImageDiscoveryStage,
            LinkValidationStage,
        )

        return (
            cls()
            .add_stage(ImageDiscoveryStage())
            .add_stage(LinkValidationStage())
            .add_stage(ContentEnhancementStage())
        )

    def add_stage(self, stage: ProcessingStage) -> ProcessingPipeline:
        self.stages.append(stage)
        return self

    def field_owners(self) -> dict[str, list[str]]:
        """Map each written ``Content`` field to the stages that write it, in run order."""
        owners: dict[str, list[str]] = {}
        for stage in self.stages:
            for field in stage.fields:
                owners.setdefault(field, []).append(stage.name)
        return owners

    def process(self, content: Content) -> Content:
        """Run every stage over ``content``.

        Returns:
            The same record, enriched.

        Raises:
            Exception: Whatever the failing stage raised; later stages are skipped.
        """
        logger.info("Running processing pipeline with %d stage(s)", len(self.stages))

        for i, stage in enumerate(self.stages, start=1):
            logger.debug("Stage %d: %s", i, stage.name)
            try:
                stage.process(content)
            except Exception:
                logger.error("Stage %s failed", stage.name, exc_info=True)
                raise
            logger.debug("Stage %s done", stage.name)

        logger.info("Processing pipeline finished")
        return content
