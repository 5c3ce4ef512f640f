"""Asset pipeline framework.

Common entrypoints:

- `sitekit.framework.session`: build session wiring (store, resolver, persister)
- `sitekit.framework.asset`: the Asset entity and bundle construction
- `sitekit.framework.output_paths`: page output file and URL derivation
"""
