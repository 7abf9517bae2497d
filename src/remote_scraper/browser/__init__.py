"""Browser automation against the remote Playwright service.

``launch`` computes per-family launch parameters, ``session`` orchestrates a
single scrape, ``interceptor`` applies the resource-blocking policy and
``events`` turns crash/close/dialog page events into an awaitable channel.
"""
