"""
Import reconciliation pipeline.
"""

from trackport.pipeline.orchestrator import ImportCoordinator
from trackport.pipeline.report import ImportReport, ImportStatus
from trackport.pipeline.watermark import latest_watermark

__all__ = ["ImportCoordinator", "ImportReport", "ImportStatus", "latest_watermark"]
