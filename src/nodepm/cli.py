"""CLI entry point for nodepm."""

import click


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--all", "show_all", is_flag=True, help="Show all processes, not just Node.js ones.")
def main(show_all: bool) -> None:
    """Interactive terminal manager for Node.js processes.

    Navigate with the arrow keys, press Enter to kill the selected process,
    Ctrl+F to filter, s/c/m to sort and h for the full key list.
    """
    from nodepm.app import NodepmApp
    from nodepm.config import Config, resolve_api_key
    from nodepm.logging import configure, get_logger
    from nodepm.monitor import ProcessSource

    try:
        log_path = configure()
        log = get_logger()
        log.info("starting", show_all=show_all, log_path=str(log_path))

        config = Config.load()
        api_key = resolve_api_key(config)
        app = NodepmApp(
            ProcessSource(show_all=show_all),
            show_all=show_all,
            api_key=api_key,
            config=config,
        )
        app.run()
    except Exception as e:
        click.echo(f"Failed to start nodepm: {e}", err=True)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
