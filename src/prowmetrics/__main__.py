from prowmetrics.cli.app import app

app()
