"""Allow ``python -m layout_search``."""

from layout_search.cli.main import main

if __name__ == '__main__':
    main()
