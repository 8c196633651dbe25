"""Allow ``python -m certfetch``."""

from certfetch.cli.main import main

main()
