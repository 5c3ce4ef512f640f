"""Asset resolution and transformation pipeline for static site builds.

Common entrypoints:

- `sitekit.framework.session.BuildSession`: owns the content store, resolver and
  persister for one build, and constructs assets.
- `sitekit.framework.output_paths.OutputPathResolver`: maps pages to output files.
"""

__version__ = "0.1.0"
