"""Bridge layer between vkcli and the outside world.

Modules
-------
api_client
    ``ApiClient`` wraps an ``httpx.Client`` for the backend's REST API and
    unwraps its ``{success, data}`` envelopes.
log_socket
    Opens the per-process normalized-log WebSocket via ``websockets``.
selector
    Runs the external ``fzf`` selector as a subprocess and parses its
    output (including ``--expect`` key lines).

Every failure surfaces as an exception from this package; nothing here
prints to the terminal.
"""
