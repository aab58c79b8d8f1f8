from eggtimer.cli import app

app()
