"""vkcli terminal output.

Modules
-------
renderer
    ``MonitorRenderer`` turns projects, tasks, statuses and reconstructed
    transcripts into Rich renderables for terminal display.
"""
