"""
Ingestion scans.

``SCANS`` maps scan types (as used by the CLI, the HTTP API and the
``data_collection_method`` app setting) to their classes.
"""

from pipeline.ingestion.ai_scan import AiScan
from pipeline.ingestion.api_scan import ApiScan
from pipeline.ingestion.base import BaseScan, ScanConfig, ScanResult
from pipeline.ingestion.multi_scan import MultiScan

SCANS: dict[str, type[BaseScan]] = {
    "api": ApiScan,
    "ai": AiScan,
    "multi": MultiScan,
}


def run_scan(scan_type: str, config: ScanConfig, session=None) -> ScanResult:
    """Run one scan by type."""
    try:
        scan_class = SCANS[scan_type]
    except KeyError:
        raise ValueError(f"Unknown scan type: {scan_type}") from None

    with scan_class(session=session) as scan:
        return scan.run(config)


__all__ = [
    "SCANS",
    "run_scan",
    "BaseScan",
    "ScanConfig",
    "ScanResult",
    "ApiScan",
    "AiScan",
    "MultiScan",
]
