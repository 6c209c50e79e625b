from railcurve.app.main import run

run()
