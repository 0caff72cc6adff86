"""Allow ``python -m ConllToParquet``."""

from .cli import main

main()
