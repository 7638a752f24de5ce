# Services package init
"""
MJML Server — Services Layer
==============================

What:  Business logic between routes (HTTP) and the MJML engine.

Service Inventory:
    - MarkupCompiler (abstract): Contract for MJML → HTML engines
    - MjmlCompiler: Implementation on top of the `mjml` package
    - RenderService: Limits, diagnostics policy and batch isolation
"""
