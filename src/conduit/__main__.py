from conduit.cli import cli

cli()
