"""Rendering: turn a validated prompt Record into final text.

    parameters.py  normalize and validate caller input per ParameterSpec
    helpers.py     template helper functions (filters and globals)
    renderer.py    Jinja2 rendering and output post-processing
    context.py     ambient context mapping (clipboard, selection, app, date)
    quick.py       one-shot render from defaults and clipboard text
"""
