"""
MJML Server — Application Package Initializer
==============================================

What: Marks the `mjml_server` directory as a Python package.
Why:  Enables module imports like `from mjml_server.config import Settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The service follows a thin layered architecture:

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │     RenderService (Business Logic)  │  ← Limits, batch isolation
    ├─────────────────────────────────────┤
    │     MarkupCompiler (Adapter)        │  ← MJML → HTML, opaque
    └─────────────────────────────────────┘

    Nothing is persisted. Every request builds its values, answers, and
    forgets them.
"""

__version__ = "1.0.0"
