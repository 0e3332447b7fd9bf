"""
Burn-In Report Writer

Renders a RunReport to the logging stack and persists the destructive
scan's bad-block list.
"""

from pathlib import Path
from typing import Optional

from .models import Drive, PhaseStatus, RunReport
from burninkit.logger import get_module_logger, LogSection, LogResult

logger = get_module_logger(__name__)


class BurnInReportWriter:
    """
    Output collaborator for the sequence controller.

    File names are derived from the drive label:
    ``burnin-<model>_<serial>.log`` and ``burnin-<model>_<serial>.bb``.

    Example:
        >>> writer = BurnInReportWriter('./burnin_logs')
        >>> writer.write(report)
    """

    def __init__(self, log_dir: str):
        self.log_dir = Path(log_dir)

    def log_path(self, drive: Drive) -> Path:
        return self.log_dir / f"burnin-{drive.label}.log"

    def bad_blocks_path(self, drive: Drive) -> Path:
        return self.log_dir / f"burnin-{drive.label}.bb"

    def write(self, report: RunReport) -> Optional[Path]:
        """
        Log the report and persist the bad-block list.

        Returns:
            Path of the bad-block file, or None when no bad blocks were found
        """
        self.log_report(report)
        return self.write_bad_blocks(report)

    def log_report(self, report: RunReport) -> None:
        drive = report.drive
        mode = 'DRY RUN' if report.simulated else 'LIVE'
        LogSection(f"Burn-in results for {drive.path} ({mode})", logger)
        logger.info(f"Model: {drive.model}")
        logger.info(f"Serial: {drive.serial}")
        logger.info(f"Capacity: {drive.capacity_bytes} bytes")
        logger.info(f"Media: {drive.media_type.value}")

        for outcome in report.outcomes:
            line = f"{outcome.phase.value}: {outcome.status.value} in {outcome.elapsed_seconds:.0f}s"
            if outcome.reason:
                line += f" [{outcome.reason}]"
            if outcome.bad_block_count is not None:
                line += f", {outcome.bad_block_count} bad blocks"

            if outcome.is_failure:
                logger.error(line)
            else:
                logger.info(line)

            if outcome.diagnostics and outcome.status is not PhaseStatus.PASSED:
                for diag_line in outcome.diagnostics.splitlines():
                    logger.info(f"    {diag_line}")

        LogResult(report.success, f"Burn-in of {drive.path}", logger)

    def write_bad_blocks(self, report: RunReport) -> Optional[Path]:
        blocks = report.bad_blocks
        if not blocks:
            return None

        path = self.bad_blocks_path(report.drive)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(''.join(f"{block}\n" for block in blocks), encoding='utf-8')
        logger.error(f"{len(blocks)} bad blocks written to {path}")
        return path
