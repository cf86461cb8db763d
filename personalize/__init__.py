"""
Template-driven image personalization.

Modules:
- engine: fetch template, resolve zones, render layers, composite
- models / zones: layout config parsing and zone resolution
- render / compositor / colors: layer rendering and flattening
- captions: brand-voice caption rewriting with platform limits
- core: request pipeline (render, upload, record generated asset)
"""
