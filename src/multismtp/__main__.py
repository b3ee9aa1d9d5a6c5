"""Entry point for 'python -m multismtp' command."""

from multismtp.cli import main

if __name__ == "__main__":
    main()
