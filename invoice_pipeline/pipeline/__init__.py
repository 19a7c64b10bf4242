"""
Pipeline Module for the Invoice Extraction Pipeline.

Tier policies, extraction modes and the batch coordinator.
"""

from .tier_policy import ExtractionMode, TierPolicy
from .coordinator import PipelineCoordinator, ocr_confidence_note

__all__ = ['ExtractionMode', 'TierPolicy', 'PipelineCoordinator', 'ocr_confidence_note']
