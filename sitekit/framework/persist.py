from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

from sitekit.foundation.paths import join_file
from sitekit.framework.config import SiteConfig
from sitekit.framework.errors import PersistError

if TYPE_CHECKING:
    from sitekit.framework.asset import Asset


class Persister:
    """Writes asset bytes under the output directory.

    A file already present at the target path (for example one copied from
    the static tree) is never overwritten.
    """

    def __init__(
        self,
        config: SiteConfig,
        *,
        dry_run: bool = False,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.dry_run = dry_run
        self.logger = logger or logging.getLogger(__name__)

    def output_file(self, asset: "Asset") -> str:
        return join_file(self.config.output_dir, asset.path)

    def save(self, asset: "Asset") -> str | None:
        """Write the asset and return the written file path, or None when nothing was written."""
        if asset.missing or not asset.path:
            return None

        file_path = self.output_file(asset)
        if self.dry_run:
            self.logger.debug('Asset "%s" not saved (dry run)', asset.path)
            return None
        if os.path.exists(file_path):
            self.logger.debug('Asset "%s" already exists, kept as is', asset.path)
            return None

        try:
            os.makedirs(os.path.dirname(file_path), exist_ok=True)
            with open(file_path, "wb") as handle:
                handle.write(asset.content)
        except OSError as exc:
            if asset.options.ignore_missing:
                self.logger.debug('Asset "%s" not saved: %s', asset.path, exc)
                return None
            raise PersistError(f'Can\'t save asset "{file_path}".') from exc

        self.logger.debug('Asset "%s" saved', asset.path)
        if asset.optimize_requested:
            asset.optimize(file_path)
        return file_path
