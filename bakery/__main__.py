from bakery.cli import run

run()
