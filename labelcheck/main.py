from labelcheck.cli.commands import app


def main() -> None:
    """Entry point: settings, logging and services are built per command."""
    app()


if __name__ == "__main__":
    main()
