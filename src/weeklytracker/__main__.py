from weeklytracker.cli import app

app(prog_name="weeklytracker")
