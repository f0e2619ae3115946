"""Command-line entry point

Run ``python cli.py --login`` once, then ``python cli.py`` to serve.
"""

from cli.main import main

if __name__ == "__main__":
    main()
