# Routes package init
"""
MJML Server — API Routes Package
==================================

Route Inventory:
    - render.py:  POST /render            (one MJML document)
                  POST /render-batch      (up to 100 documents)
    - health.py:  GET  /health            (liveness probe)
                  GET  /info              (service metadata)

Routes stay thin: extract the body, call RenderService, return its result.
"""
