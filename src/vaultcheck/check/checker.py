from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Optional

from ..store.base import DocumentStore
from ..store.models import DocumentMetadata
from ..store.vault import FilesystemVault
from .anchors import AnchorValidator
from .config import CheckConfig
from .extractor import extract_references
from .models import (
    CheckReport,
    DocumentResult,
    MissingEmbeddedAsset,
    MissingReference,
    ReferenceKind,
    ReportError,
    ResolutionStatus,
    UnreferencedAsset,
)
from .report import render_report, replace_between_markers, write_report
from .resolver import TargetResolver
from .tracker import AssetReachabilityTracker

logger = logging.getLogger(__name__)

# Failures reading a link target; the anchor check reports missing metadata.
DOCUMENT_ERRORS = (OSError, UnicodeDecodeError, ValueError)


class Checker:
    """One full pass over a document store.

    Documents are checked in parallel; results are merged in document order,
    so the report does not depend on scheduling.
    """

    def __init__(self, store: DocumentStore, config: CheckConfig, today: Optional[date] = None):
        self.store = store
        self.config = config
        self.today = today or date.today()

    def _target_metadata(self, path: str) -> Optional[DocumentMetadata]:
        try:
            return self.store.get_metadata(path)
        except DOCUMENT_ERRORS as e:
            logger.warning(f"Could not parse link target {path}: {e}")
            return None

    def check_document(
        self,
        path: str,
        resolver: TargetResolver,
        validator: AnchorValidator,
    ) -> DocumentResult:
        document = self.store.snapshot(path)
        result = DocumentResult(path=path)

        for reference in extract_references(document, self.config.map_block_tags):
            resolved = resolver.resolve(reference)

            if resolved.status == ResolutionStatus.UNRESOLVED:
                if reference.kind == ReferenceKind.MAP_IMAGE:
                    result.missing_assets.append(MissingEmbeddedAsset(source=path, asset=reference.raw))
                else:
                    result.missing_references.append(MissingReference(source=path, target=resolved.target))
                continue

            if resolved.status not in (ResolutionStatus.RESOLVED, ResolutionStatus.SELF):
                continue
            if not resolved.anchor or resolved.path is None:
                continue

            if resolved.path == path:
                metadata = document.metadata
            else:
                metadata = self._target_metadata(resolved.path)
            finding = validator.validate(path, resolved.anchor, resolved.path, metadata)
            if finding is not None:
                result.missing_anchors.append(finding)

        return result

    def run(self) -> CheckReport:
        ignore_files = self.config.ignore_files
        tracker = AssetReachabilityTracker(
            self.store.list_all_files(),
            exempt_paths=self.config.exempt_paths,
            ignore_files=ignore_files,
        )
        resolver = TargetResolver(self.store, tracker, ignore_files=ignore_files, today=self.today)
        validator = AnchorValidator(self.config.rules.ignore_anchors)

        documents = [p for p in self.store.list_documents() if p not in ignore_files]
        logger.info(f"Checking {len(documents)} documents")

        results: dict[str, DocumentResult] = {}
        failed: list[str] = []
        with ThreadPoolExecutor(max_workers=self.config.workers) as pool:
            futures = {pool.submit(self.check_document, p, resolver, validator): p for p in documents}
            try:
                for future in as_completed(futures):
                    path = futures[future]
                    try:
                        results[path] = future.result()
                    except Exception as e:
                        logger.warning(f"Skipping {path}: {e}")
                        failed.append(path)
            except BaseException:
                for future in futures:
                    future.cancel()
                raise

        report_results = [results[p] for p in documents if p in results]
        unreferenced = tracker.unreferenced(
            ignore_unreferenced_path=self.config.rules.ignore_unreferenced_path,
            attachment_dirs=self.config.attachment_dirs,
            resolve_companion=lambda companion: self.store.resolve_path(companion, companion),
        )
        return CheckReport(
            missing_references=[f for r in report_results for f in r.missing_references],
            missing_anchors=[f for r in report_results for f in r.missing_anchors],
            missing_assets=[f for r in report_results for f in r.missing_assets],
            unreferenced=[UnreferencedAsset(path=p) for p in unreferenced],
            scanned=len(report_results),
            failed=sorted(failed),
        )


@dataclass(frozen=True)
class CheckRun:
    report: CheckReport
    report_file: Path
    text: str
    written: bool


def check_vault(
    vault_root: Path,
    config: CheckConfig,
    *,
    today: Optional[date] = None,
    dry_run: bool = False,
) -> CheckRun:
    """Scan a vault and update the report document between its markers.

    Raises:
        ReportError: If the report document does not exist or has no markers
    """
    report_file = vault_root / config.report_path
    if not report_file.is_file():
        raise ReportError(f"{config.report_path} file not found in {vault_root}")

    report = Checker(FilesystemVault(vault_root), config, today=today).run()
    text = replace_between_markers(
        report_file.read_text(encoding="utf-8"),
        render_report(report),
        config.begin_marker,
        config.end_marker,
    )
    written = False if dry_run else write_report(report_file, text)
    logger.info(f"Found {report.total_findings} problems in {report.scanned} documents")
    return CheckRun(report=report, report_file=report_file, text=text, written=written)
