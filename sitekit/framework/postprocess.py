from __future__ import annotations

import logging
import os

from sitekit.framework.config import SiteConfig
from sitekit.framework.errors import MinifyError
from sitekit.framework.stages import minify_content


def postprocess_output(config: SiteConfig, *, logger: logging.Logger | None = None) -> list[str]:
    """
    Minify CSS/JS files already present in the output directory.

    Each kind runs only when enabled under `postprocess.<kind>.enabled`;
    files named `*.min.<ext>` are left alone. Returns the rewritten paths.
    """

    logger = logger or logging.getLogger(__name__)
    kinds = [ext for ext, enabled in (("css", config.postprocess.css), ("js", config.postprocess.js)) if enabled]
    if not kinds or not os.path.isdir(config.output_dir):
        return []

    processed: list[str] = []
    for root, _dirs, files in os.walk(config.output_dir):
        for name in sorted(files):
            ext = os.path.splitext(name)[1].lstrip(".").lower()
            if ext not in kinds or name.lower().endswith(f".min.{ext}"):
                continue
            file_path = os.path.join(root, name)
            try:
                with open(file_path, "r", encoding="utf-8") as handle:
                    original = handle.read()
            except UnicodeDecodeError as exc:
                raise MinifyError(f'Output file "{file_path}" is not valid UTF-8 text: {exc}') from exc
            minified = minify_content(ext, original)
            if minified != original:
                with open(file_path, "w", encoding="utf-8") as handle:
                    handle.write(minified)
            processed.append(file_path)

    logger.info("Post-processed %d file(s): %s", len(processed), ", ".join(kinds))
    return processed
