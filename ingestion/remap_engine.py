"""ingestion/remap_engine.py — Orchestrates one index-repair run.

Side effects live here: reads the session file, builds the descriptor
provider (LV2 bundle scan or YAML catalog), and hands writing to
:class:`ingestion.patch_writer.PatchApplier`.  Parsing and resolution
delegate to core/ardour/.
"""

from __future__ import annotations

import logging
from pathlib import Path

from core.ardour.report import RemapSummary, summarize
from core.ardour.resolver import resolve
from core.ardour.session import SessionDocument, enumerate_plugin_instances, parse
from core.ardour.types import RemapDecision
from core.config import DEFAULT_CONFIG, RemapConfig
from core.lv2.base import DescriptorProvider
from ingestion.lv2_world import Lv2WorldProvider
from ingestion.patch_writer import PatchApplier, PatchResult, render_patched
from ingestion.yaml_catalog import YamlCatalogProvider

logger = logging.getLogger(__name__)


def create_descriptor_provider(config: RemapConfig) -> DescriptorProvider:
    """Return the catalog named by ``config``.

    A configured ``catalog_path`` wins over scanning ``lv2_path``.

    Raises:
        CatalogError: If the YAML catalog cannot be loaded.
    """
    if config.catalog_path:
        return YamlCatalogProvider(Path(config.catalog_path))
    return Lv2WorldProvider(config.lv2_path)


class RemapEngine:
    """Runs parse → resolve → patch for one session.

    One engine instance is one run: the resolver's per-URI memo lives only
    inside each :meth:`plan` call, and the LV2 bundle index only as long as
    the provider.
    """

    def __init__(
        self,
        config: RemapConfig = DEFAULT_CONFIG,
        *,
        provider: DescriptorProvider | None = None,
    ) -> None:
        """Initialize the RemapEngine.

        Args:
            config:   Run configuration.
            provider: Optional descriptor provider.  If not provided, one is
                      built from ``config`` (YAML catalog or LV2 bundles).
        """
        self.config = config
        self.provider = provider if provider is not None else create_descriptor_provider(config)

    def plan(self, data: bytes) -> tuple[SessionDocument, list[RemapDecision]]:
        """Parse ``data`` and decide every reference; nothing is written.

        Raises:
            ParseError: If ``data`` is not a well-formed session.
        """
        document = parse(data)
        decisions = resolve(enumerate_plugin_instances(document), self.provider)
        return document, decisions

    def run(self, session_path: Path, *, output_path: Path | None = None) -> PatchResult:
        """Repair a session file, in place (with backup) or into ``output_path``.

        Raises:
            OSError:          If the session file cannot be read.
            ParseError:       If it is not a well-formed session.
            BackupWriteError: If the backup cannot be created.
            PatchWriteError:  If the patched session cannot be written.
        """
        session_path = Path(session_path)
        data = session_path.read_bytes()
        logger.debug("read %d bytes from %s", len(data), session_path)

        document, decisions = self.plan(data)
        applier = PatchApplier(
            session_path,
            output_path=output_path,
            backup_suffix=self.config.backup_suffix,
            dry_run=self.config.dry_run,
        )
        return applier.apply(document, decisions)

    def run_bytes(self, data: bytes) -> tuple[bytes, RemapSummary]:
        """Repair session bytes in memory (stdin → stdout mode).

        Returns:
            ``(patched_bytes, summary)``; ``patched_bytes`` equals ``data``
            when no remap applies.
        """
        document, decisions = self.plan(data)
        summary = summarize(decisions)
        return render_patched(document, decisions), summary
