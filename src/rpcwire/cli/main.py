"""
rpcwire console entry point. Commands live in rpcwire.cli.commands and need the cli extra.
"""
try:
    import typer
except ImportError:
    typer = None  # type: ignore


def _ensure_typer():
    if typer is None:
        raise SystemExit("rpcwire CLI requires typer: pip install 'rpcwire[cli]' or pip install typer")


def main() -> None:
    """Entry point for the rpcwire console command."""
    _ensure_typer()
    from rpcwire.cli.commands import app

    app()


if __name__ == "__main__":
    main()
