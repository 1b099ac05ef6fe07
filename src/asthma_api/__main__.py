"""Entry point for 'python -m asthma_api' command."""

from asthma_api.cli import main

if __name__ == "__main__":
    main()
