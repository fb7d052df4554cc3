"""HoldingStore server entry point."""

from holdingstore.server.cli import main

if __name__ == "__main__":
    main()
