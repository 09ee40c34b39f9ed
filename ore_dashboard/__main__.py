from ore_dashboard.cli import app

app()
