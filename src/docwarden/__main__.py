from docwarden.cli import cli

cli()
