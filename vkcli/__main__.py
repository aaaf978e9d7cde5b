"""Allow ``python -m vkcli`` (used by the picker's preview command)."""

from vkcli.cli.app import main

main()
