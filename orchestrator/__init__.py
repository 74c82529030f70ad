"""
Orchestrator Package - Pipeline Coordination Layer.

============================================================
PACKAGE OVERVIEW
============================================================
Drives the provider layer over the monitored roster and wires
the pipeline together for the CLI and the HTTP surface.

============================================================
CORE PRINCIPLES
============================================================
1. Batches run strictly one after another
2. Within a batch every entity settles before moving on
3. One entity's failure never fails the run
4. Dependencies are injected, never imported as globals

============================================================
ARCHITECTURE
============================================================

    +-----------------------------------------------------+
    |                    Orchestrator                     |
    |-----------------------------------------------------|
    |  BatchFetchOrchestrator | paced roster fetch        |
    |  Pipeline               | component wiring          |
    |  CLI                    | command-line interface    |
    +-----------------------------------------------------+

============================================================
"""

from .batch import (
    BatchFetchOrchestrator,
    BatchRunResult,
    batch_count_for,
    partition,
)
from .core import Pipeline, build_pipeline, setup_logging


__all__ = [
    "BatchFetchOrchestrator",
    "BatchRunResult",
    "partition",
    "batch_count_for",
    "Pipeline",
    "build_pipeline",
    "setup_logging",
]
