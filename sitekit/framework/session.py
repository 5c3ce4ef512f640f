from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Sequence

from sitekit.foundation.config_io import load_config
from sitekit.foundation.logging_utils import setup_build_logger
from sitekit.framework.asset import Asset
from sitekit.framework.cache import ContentStore
from sitekit.framework.config import SiteConfig
from sitekit.framework.output_paths import OutputPathResolver
from sitekit.framework.persist import Persister
from sitekit.framework.postprocess import postprocess_output
from sitekit.framework.resolver import PathResolver
from sitekit.framework.stages import TransformPipeline


@dataclass
class BuildSession:
    """Per-build wiring: one content store, resolver, pipeline and persister."""

    config: SiteConfig
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("sitekit"))
    dry_run: bool = False
    debug: bool = False
    store: ContentStore | None = None

    resolver: PathResolver = field(init=False)
    pipeline: TransformPipeline = field(init=False)
    persister: Persister = field(init=False)

    def __post_init__(self) -> None:
        if self.store is None:
            self.store = ContentStore(self.config.store_dir, logger=self.logger)
        self.resolver = PathResolver(self.config, logger=self.logger)
        self.pipeline = TransformPipeline(
            self.config, self.store, debug=self.debug, logger=self.logger
        )
        self.persister = Persister(self.config, dry_run=self.dry_run, logger=self.logger)

    @classmethod
    def from_site(
        cls,
        site_dir: str,
        *,
        config_path: str | None = None,
        log_dir: str | None = None,
        dry_run: bool = False,
        debug: bool = False,
    ) -> "BuildSession":
        cfg_dict, meta = load_config(config_path=config_path, site_dir=site_dir)
        config = SiteConfig.from_dict(cfg_dict, root=meta["site_root"])
        build_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        logger, _log_file = setup_build_logger(log_dir, build_id)
        logger.info("Loaded config (%s) from %s", meta["mode"], ", ".join(meta["paths"]))
        return cls(config=config, logger=logger, dry_run=dry_run, debug=debug)

    def asset(self, paths: str | Sequence[str], **options: Any) -> Asset:
        return Asset(self, paths, options)

    def output_paths(self) -> OutputPathResolver:
        return OutputPathResolver(self.config)

    def postprocess(self) -> list[str]:
        return postprocess_output(self.config, logger=self.logger)
