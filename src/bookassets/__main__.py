"""Entry point for `python -m bookassets`."""

from bookassets.cli.app import app


def main() -> None:
    """Invoke the CLI application."""

    app()


if __name__ == "__main__":
    main()
